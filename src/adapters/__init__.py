"""
Adapters package for Citizenly.

This package contains the external data source adapters that implement
the BaseAdapter interface.
"""

from .base_adapter import BaseAdapter
from .legiscan_adapter import LegiScanAdapter

__all__ = [
    "BaseAdapter",
    "LegiScanAdapter",
]
