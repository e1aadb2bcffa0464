"""Store plugins.

A plugin is any callable taking the store; it is applied once at the end
of store construction (``StoreOptions.plugins``).
"""

from pystatetree.plugins.logger import create_logger

__all__ = ["create_logger"]
