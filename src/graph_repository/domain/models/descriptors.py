"""
Data types shared by discovery, dispatch and result shaping.
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..exceptions import DiscoveryError


class ResultShape(str, Enum):
    SINGLE = "single"
    OPTIONAL = "optional"
    COLLECTION = "collection"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """One discovered repository interface and the types it is declared over."""

    repository_type: type
    entity_type: type
    id_type: Any = None

    @property
    def name(self) -> str:
        """Registration name of the repository (its class name)."""
        return self.repository_type.__name__

    def describe(self) -> str:
        id_name = getattr(self.id_type, "__name__", repr(self.id_type))
        return (
            f"{self.repository_type.__module__}.{self.repository_type.__qualname__}"
            f"[{self.entity_type.__name__}, {id_name}]"
        )


@dataclass(frozen=True)
class QueryMethod:
    """Dispatch entry for a method carrying a declarative query template."""

    name: str
    template: str
    shape: ResultShape
    element_type: type
    signature: inspect.Signature
    container: type = list

    def bind_arguments(self, args: tuple, kwargs: dict) -> list[Any]:
        """Bind call-site arguments to the declared parameter order."""
        bound = self.signature.bind(None, *args, **kwargs)
        bound.apply_defaults()
        values: list[Any] = []
        parameters = list(self.signature.parameters.values())[1:]
        for parameter in parameters:
            if parameter.name not in bound.arguments:
                continue
            value = bound.arguments[parameter.name]
            if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
                values.extend(value)
            elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
                values.extend(value.values())
            else:
                values.append(value)
        return values


@dataclass
class DiscoveryReport:
    """Outcome of a discovery run."""

    descriptors: list[RepositoryDescriptor] = field(default_factory=list)
    errors: list[DiscoveryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def get(self, name: str) -> Optional[RepositoryDescriptor]:
        for descriptor in self.descriptors:
            if descriptor.name == name:
                return descriptor
        return None
