"""Domain interfaces for dependency inversion."""

from .crud_repository import CrudRepository
from .driver_adapter import DriverAdapter
from .query import get_query_template, query

__all__ = ["CrudRepository", "DriverAdapter", "get_query_template", "query"]
