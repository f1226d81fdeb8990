"""
Repository discovery.

Repository interfaces are classes extending ``CrudRepository[EntityT, IdT]``.
Discovery imports every module inside the requested scopes, walks the
subclass tree of the repository capability and resolves the entity and
identifier types each declaration is parameterized over.
"""

import importlib
import pkgutil
import sys
import typing
from typing import Any, Optional, TypeVar

from loguru import logger

from ..exceptions import DiscoveryError
from ..interfaces.crud_repository import CrudRepository
from ..models.descriptors import DiscoveryReport, RepositoryDescriptor
from .result_shape import is_concrete_type

PROXY_MARKER_ATTR = "__repository_proxy__"


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _base_arguments(
    cls: type, base: type, bindings: dict[Any, Any]
) -> Optional[tuple[Any, ...]]:
    """Return the type arguments ``cls`` supplies to ``base``.

    Type variables are substituted through intermediate generic classes.
    Returns ``()`` when ``base`` is extended without arguments and ``None``
    when ``cls`` does not extend ``base`` at all.
    """
    for orig in cls.__dict__.get("__orig_bases__", cls.__bases__):
        origin = typing.get_origin(orig) or orig
        if not (isinstance(origin, type) and issubclass(origin, base)):
            continue
        args = tuple(
            bindings.get(arg, arg) if isinstance(arg, TypeVar) else arg
            for arg in typing.get_args(orig)
        )
        if origin is base:
            return args
        parameters = getattr(origin, "__parameters__", ())
        result = _base_arguments(origin, base, dict(zip(parameters, args)))
        if result is not None:
            return result
    return None


def describe_repository(
    repository_type: type, base: type = CrudRepository
) -> RepositoryDescriptor:
    """
    Build the descriptor for a single repository interface.

    Raises:
        DiscoveryError: If the class does not extend ``base`` with two type
            arguments or its entity type is not a concrete class.
    """
    name = getattr(repository_type, "__qualname__", repr(repository_type))
    if (
        not isinstance(repository_type, type)
        or not issubclass(repository_type, base)
        or repository_type is base
    ):
        raise DiscoveryError(name, f"does not extend {base.__name__}")

    args = _base_arguments(repository_type, base, {})
    if not args or len(args) != 2:
        raise DiscoveryError(
            name,
            f"{base.__name__} must be parameterized with an entity type and an identifier type",
        )

    entity_type, id_type = args
    if not is_concrete_type(entity_type):
        raise DiscoveryError(
            name, f"entity type {entity_type!r} cannot be resolved to a concrete class"
        )
    return RepositoryDescriptor(
        repository_type=repository_type, entity_type=entity_type, id_type=id_type
    )


def _record(errors: list[DiscoveryError], error: DiscoveryError) -> None:
    logger.error(str(error))
    errors.append(error)


def _import_scope(scope: str, errors: list[DiscoveryError]) -> None:
    try:
        module = importlib.import_module(scope)
    except Exception as exc:
        _record(errors, DiscoveryError(scope, f"module could not be imported: {exc}"))
        return

    path = getattr(module, "__path__", None)
    if path is None:
        return

    def _on_error(name: str) -> None:
        _record(errors, DiscoveryError(name, "package could not be imported"))

    try:
        for info in pkgutil.walk_packages(path, prefix=f"{scope}.", onerror=_on_error):
            # walk_packages imports packages itself
            if info.ispkg or info.name in sys.modules:
                continue
            try:
                importlib.import_module(info.name)
            except Exception as exc:
                _record(
                    errors,
                    DiscoveryError(info.name, f"module could not be imported: {exc}"),
                )
    except Exception as exc:
        _record(errors, DiscoveryError(scope, f"package walk failed: {exc}"))


def _all_subclasses(base: type) -> list[type]:
    seen: set[type] = set()
    stack = list(base.__subclasses__())
    while stack:
        cls = stack.pop()
        if cls in seen:
            continue
        seen.add(cls)
        stack.extend(cls.__subclasses__())
    return sorted(seen, key=lambda cls: (cls.__module__, cls.__qualname__))


def _declares_type_parameters(cls: type) -> bool:
    """True when ``cls`` lists ``Generic[...]`` or ``Protocol[...]`` among its own bases."""
    for orig in cls.__dict__.get("__orig_bases__", ()):
        if typing.get_origin(orig) in (typing.Generic, typing.Protocol):
            return True
    return False


def _in_scope(cls: type, scopes: tuple[str, ...]) -> bool:
    if not scopes:
        return True
    module = cls.__module__
    return any(module == scope or module.startswith(f"{scope}.") for scope in scopes)


def discover_repositories(
    *scopes: str, base: type = CrudRepository, fail_fast: bool = False
) -> DiscoveryReport:
    """
    Discover repository interfaces declared within ``scopes``.

    Each scope is a dotted module or package name; packages are imported
    recursively. Without scopes, every currently loaded subclass of ``base``
    is considered. Intermediate bases that declare their own type parameters
    with ``Generic[...]`` are skipped; any other unresolved entity type is an
    error.

    Args:
        *scopes: Module or package names to search.
        base: The repository capability class.
        fail_fast: Raise the first ``DiscoveryError`` instead of collecting it.

    Returns:
        A ``DiscoveryReport`` with descriptors in (module, qualified name) order
        and the errors for malformed declarations or unimportable modules.
    """
    report = DiscoveryReport()
    for scope in scopes:
        _import_scope(scope, report.errors)
        if fail_fast and report.errors:
            raise report.errors[0]

    for cls in _all_subclasses(base):
        if not _in_scope(cls, scopes) or cls.__dict__.get(PROXY_MARKER_ATTR, False):
            continue
        if _declares_type_parameters(cls):
            logger.debug(f"Skipping generic repository base {_qualified_name(cls)}")
            continue
        try:
            descriptor = describe_repository(cls, base)
        except DiscoveryError as exc:
            if fail_fast:
                raise
            logger.error(f"Skipping repository {_qualified_name(cls)}: {exc}")
            report.errors.append(exc)
            continue
        logger.info(f"Discovered repository {descriptor.describe()}")
        report.descriptors.append(descriptor)

    return report
