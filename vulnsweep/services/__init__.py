"""
Calling-layer services wrapped around the stateless scanner core.
"""

from vulnsweep.services.cache import ScanCache

__all__ = ['ScanCache']
