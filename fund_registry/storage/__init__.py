"""
FundRegistry - Storage Package
================================
Registry data persistence.
"""

from fund_registry.storage.db import RegistryDatabase

__all__ = [
    "RegistryDatabase",
]
