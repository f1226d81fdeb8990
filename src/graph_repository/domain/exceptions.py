"""Exceptions raised by the repository dispatch layer."""

from typing import Any, Optional


class RepositoryError(Exception):
    """Base exception for repository errors."""

    def __init__(self, message: str, method_name: Optional[str] = None) -> None:
        self.message = message
        self.method_name = method_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.method_name:
            return f"{self.message} (method: {self.method_name})"
        return self.message


class DiscoveryError(RepositoryError):
    """Raised when a repository declaration is malformed."""

    def __init__(self, repository_type: str, reason: str) -> None:
        self.repository_type = repository_type
        self.reason = reason
        super().__init__(f"Invalid repository declaration '{repository_type}': {reason}")


class QueryTemplateError(RepositoryError):
    """Base class for template rendering errors."""


class PlaceholderOutOfRangeError(QueryTemplateError):
    """Raised when a placeholder references an argument that was not supplied."""

    def __init__(self, index: int, argument_count: int) -> None:
        self.index = index
        self.argument_count = argument_count
        super().__init__(
            f"Argument index out of bounds: {index} ({argument_count} argument(s) supplied)"
        )


class PlaceholderReuseError(QueryTemplateError):
    """Raised when the same placeholder index appears more than once."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Placeholder ?{index} is referenced more than once")


class ArgumentCountMismatchError(QueryTemplateError):
    """Raised when placeholders and arguments are not in one-to-one correspondence."""

    def __init__(self, placeholder_count: int, argument_count: int) -> None:
        self.placeholder_count = placeholder_count
        self.argument_count = argument_count
        super().__init__(
            "Number of placeholders in the query doesn't match the number of arguments: "
            f"{placeholder_count} placeholder(s), {argument_count} argument(s)"
        )


class UnsupportedReturnShapeError(RepositoryError):
    """Raised when a query method declares a return type that cannot be reshaped."""

    def __init__(self, method_name: str, return_type: Any) -> None:
        self.return_type = return_type
        super().__init__(
            f"Unsupported return type for declarative query: {return_type!r}",
            method_name=method_name,
        )


class RepositoryConfigurationError(RepositoryError):
    """Raised when repositories are wired incorrectly."""


class DriverExecutionError(RepositoryError):
    """Raised when the database driver fails to execute a query or map its rows."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        method_name: Optional[str] = None,
    ) -> None:
        self.query = query
        super().__init__(message, method_name=method_name)
