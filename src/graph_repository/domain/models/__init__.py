from .descriptors import DiscoveryReport, QueryMethod, RepositoryDescriptor, ResultShape

__all__ = ["DiscoveryReport", "QueryMethod", "RepositoryDescriptor", "ResultShape"]
