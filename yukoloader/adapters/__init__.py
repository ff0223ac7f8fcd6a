"""Adapters — bindings for the external commands a bootstrap drives.

Public re-exports for convenient access.
"""

from yukoloader.adapters.base import Adapter, ExecutionContext
from yukoloader.adapters.mock import MockAdapter
from yukoloader.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]
