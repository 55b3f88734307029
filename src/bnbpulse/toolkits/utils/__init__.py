"""
Utility modules for the upstream toolkits.

- DataHTTPClient: async HTTP transport over named endpoints
- normalizers: hex/wei/percentage/timestamp conversions
"""

from .http_client import DataHTTPClient
from . import normalizers

__all__ = [
    'DataHTTPClient',
    'normalizers',
]
