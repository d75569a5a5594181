"""Discovery of page objects and shared objects.

Every public ``*.py`` file below a configured directory is imported and made
available under a camel-cased key derived from its relative path::

    page-objects/google-search.py      -> page.googleSearch
    shared-objects/checkout/cart.py    -> shared.checkoutCart

Shared-object directories are merged in the order given; a later directory
replaces identically keyed modules from earlier ones. The page-object
directory is loaded into its own ``page`` namespace.
"""

from __future__ import annotations

import importlib.util
import logging
import re
import sys
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType, ModuleType
from typing import Any, Optional, Sequence

from selenium_bdd.exceptions import RegistryLoadError

logger = logging.getLogger(__name__)

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def derive_key(relative_path: Path | str) -> str:
    """Camel-case a module path relative to its object directory.

    >>> derive_key("checkout/cart-page.py")
    'checkoutCartPage'
    """
    path = Path(relative_path)
    parts = list(path.parent.parts) + [path.stem]
    words = [w for part in parts for w in _WORD_SPLIT.split(part) if w]
    if not words:
        raise ValueError(f"Cannot derive a registry key from {relative_path!r}")
    head, *tail = words
    return head[0].lower() + head[1:] + "".join(w[0].upper() + w[1:] for w in tail)


class Registry(Mapping):
    """Read-only namespace of loaded modules, by key and by attribute."""

    def __init__(self, modules: Optional[Mapping[str, ModuleType]] = None, name: str = "registry") -> None:
        object.__setattr__(self, "_modules", MappingProxyType(dict(modules or {})))
        object.__setattr__(self, "_name", name)

    def __getitem__(self, key: str) -> ModuleType:
        return self._modules[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __getattr__(self, key: str) -> ModuleType:
        if key.startswith("_"):
            raise AttributeError(key)
        try:
            return self._modules[key]
        except KeyError:
            raise AttributeError(f"{self._name} has no object '{key}'") from None

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{self._name} is read-only")

    def __delattr__(self, key: str) -> None:
        raise AttributeError(f"{self._name} is read-only")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._modules))

    def __repr__(self) -> str:
        return f"Registry({self._name!r}, keys={sorted(self._modules)})"


class ObjectRegistry:
    """The two independent namespaces visible to steps: shared and page."""

    __slots__ = ("shared", "page")

    def __init__(self, shared: Registry, page: Registry) -> None:
        object.__setattr__(self, "shared", shared)
        object.__setattr__(self, "page", page)

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("ObjectRegistry is read-only")


def _iter_module_files(directory: Path) -> Iterator[Path]:
    for path in sorted(directory.rglob("*.py")):
        relative = path.relative_to(directory)
        if any(part.startswith(("_", ".")) for part in relative.parts):
            continue
        yield path


def _import_file(path: Path, module_name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"no loader for {path}")
    module = importlib.util.module_from_spec(spec)
    # Registered before execution so dataclasses and pickling can find it.
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


class RegistryBuilder:
    """Builds the shared/page object namespaces exactly once per run.

    Args:
        shared_dirs: Shared-object directories, lowest precedence first.
        page_dir: The single page-object directory.
        on_error: ``"abort"`` raises ``RegistryLoadError`` when a module fails
            to import; ``"skip"`` logs the error and drops that directory.
    """

    def __init__(
        self,
        shared_dirs: Sequence[Path | str] = (),
        page_dir: Optional[Path | str] = None,
        *,
        on_error: str = "abort",
    ) -> None:
        if on_error not in ("abort", "skip"):
            raise ValueError(f"on_error must be 'abort' or 'skip', got {on_error!r}")
        self.shared_dirs = [Path(d) for d in shared_dirs]
        self.page_dir = Path(page_dir) if page_dir is not None else None
        self.on_error = on_error
        self._built: Optional[ObjectRegistry] = None

    @property
    def built(self) -> bool:
        return self._built is not None

    def build(self) -> ObjectRegistry:
        """Load every configured directory.

        Returns:
            The read-only registry. Later calls return the same object.

        Raises:
            RegistryLoadError: If a module fails to import and ``on_error``
                is ``"abort"``.
        """
        if self._built is not None:
            return self._built

        shared: dict[str, ModuleType] = {}
        for index, directory in enumerate(self.shared_dirs):
            loaded = self._load_directory(directory, f"shared{index}")
            for key, module in loaded.items():
                if key in shared:
                    logger.debug(
                        "Shared object '%s' from %s overrides %s",
                        key, module.__file__, shared[key].__file__,
                    )
                shared[key] = module

        page: dict[str, ModuleType] = {}
        if self.page_dir is not None:
            page = self._load_directory(self.page_dir, "page")

        self._built = ObjectRegistry(
            shared=Registry(shared, name="shared"),
            page=Registry(page, name="page"),
        )
        logger.info("Loaded %d shared objects and %d page objects", len(shared), len(page))
        return self._built

    def _load_directory(self, directory: Path, namespace: str) -> dict[str, ModuleType]:
        if not directory.is_dir():
            logger.debug("Object directory %s does not exist, skipping", directory)
            return {}

        modules: dict[str, ModuleType] = {}
        for path in _iter_module_files(directory):
            key = derive_key(path.relative_to(directory))
            module_name = f"_selenium_bdd_{namespace}_{key}"
            try:
                module = _import_file(path, module_name)
            except Exception as e:  # noqa: BLE001
                message = f"Failed to load {path}: {type(e).__name__}: {e}"
                if self.on_error == "abort":
                    raise RegistryLoadError(message) from e
                logger.error("%s; skipping directory %s", message, directory)
                return {}
            if key in modules:
                logger.warning("Duplicate object key '%s' in %s, %s wins", key, directory, path.name)
            modules[key] = module
        return modules
