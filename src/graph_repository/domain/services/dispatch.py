"""
Runtime implementations of repository interfaces.

``build_repository`` creates a subclass of the repository interface whose
methods are handler closures: methods carrying a query template run the
render / execute / reshape pipeline, every other public method is forwarded
to the generic CRUD implementation for the entity type.
"""

import functools
import inspect
from typing import Any, Callable

from loguru import logger

from ..exceptions import (
    DriverExecutionError,
    QueryTemplateError,
    RepositoryConfigurationError,
)
from ..interfaces.driver_adapter import DriverAdapter
from ..interfaces.query import get_query_template
from ..models.descriptors import QueryMethod, RepositoryDescriptor
from .query_template import render
from .registry import PROXY_MARKER_ATTR
from .result_shape import adapt, resolve_shape

DESCRIPTOR_ATTR = "__repository_descriptor__"


def interface_methods(repository_type: type) -> dict[str, Callable]:
    """Public functions declared on ``repository_type`` or its bases."""
    methods: dict[str, Callable] = {}
    for klass in repository_type.__mro__:
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or name in methods:
                continue
            if inspect.isfunction(value):
                methods[name] = value
    return methods


def query_method(name: str, func: Callable, template: str) -> QueryMethod:
    """Resolve the dispatch entry for an annotated method."""
    shape, element_type, container = resolve_shape(func)
    return QueryMethod(
        name=name,
        template=template,
        shape=shape,
        element_type=element_type,
        signature=inspect.signature(func),
        container=container,
    )


def _query_handler(method: QueryMethod, driver: DriverAdapter, func: Callable) -> Callable:
    @functools.wraps(func)
    def handler(self, *args: Any, **kwargs: Any) -> Any:
        values = method.bind_arguments(args, kwargs)
        try:
            literal = render(method.template, values)
            logger.debug(f"{method.name}: executing {literal}")
            rows = driver.query(literal, method.element_type)
        except (QueryTemplateError, DriverExecutionError) as exc:
            if exc.method_name is None:
                exc.method_name = method.name
            raise
        return adapt(method.shape, rows, method.container)

    return handler


def _crud_handler(name: str, target: Any, entity_type: type, func: Callable) -> Callable:
    @functools.wraps(func)
    def handler(self, *args: Any, **kwargs: Any) -> Any:
        implementation = getattr(target, name, None)
        if not callable(implementation):
            raise RepositoryConfigurationError(
                f"Generic repository for {entity_type.__name__} does not provide method '{name}'",
                method_name=name,
            )
        return implementation(*args, **kwargs)

    return handler


def build_repository(
    descriptor: RepositoryDescriptor, driver: DriverAdapter, crud_target: Any
) -> Any:
    """
    Build a ready-to-use implementation of ``descriptor.repository_type``.

    Args:
        descriptor: The discovered repository interface.
        driver: Adapter executing rendered declarative queries.
        crud_target: Generic CRUD implementation for the entity type.

    Returns:
        An instance of a dynamically created subclass of the repository
        interface.

    Raises:
        UnsupportedReturnShapeError: If an annotated method declares a return
            type that cannot be reshaped. Raised here rather than on first call.
    """
    repository_type = descriptor.repository_type
    namespace: dict[str, Any] = {
        "__module__": repository_type.__module__,
        "__doc__": repository_type.__doc__,
        PROXY_MARKER_ATTR: True,
        DESCRIPTOR_ATTR: descriptor,
        "__repr__": lambda self: (
            f"<{repository_type.__name__} repository for {descriptor.entity_type.__name__}>"
        ),
    }

    query_count = 0
    for name, func in interface_methods(repository_type).items():
        template = get_query_template(func)
        if template is not None:
            namespace[name] = _query_handler(query_method(name, func, template), driver, func)
            query_count += 1
        else:
            namespace[name] = _crud_handler(name, crud_target, descriptor.entity_type, func)

    proxy_type = type(f"{repository_type.__name__}Proxy", (repository_type,), namespace)
    logger.debug(
        f"Built repository {descriptor.name} with {query_count} declarative "
        f"quer{'y' if query_count == 1 else 'ies'}"
    )
    return proxy_type.__new__(proxy_type)
