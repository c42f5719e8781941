"""
FundRegistry - Crowdfunding Campaign Registry
===============================================
Registry di campagne di raccolta fondi con fondi in custodia.

Version: 1.0.0
Author: FundRegistry Team
License: MIT
"""

__version__ = "1.0.0"
__author__ = "FundRegistry Team"
__license__ = "MIT"

# Core imports
from fund_registry.domain.registry import FundRegistry
from fund_registry.domain.ledger import ValueLedger, RecordingLedger, BalanceLedger
from fund_registry.domain.models import Campaign, Contribution, RegistryEvent
from fund_registry.config import RegistrySettings, get_settings
from fund_registry.storage.db import RegistryDatabase

# Constants
from fund_registry.constants import ErrorCode, EventType

__all__ = [
    # Version
    "__version__",

    # Core
    "FundRegistry",
    "ValueLedger",
    "RecordingLedger",
    "BalanceLedger",
    "Campaign",
    "Contribution",
    "RegistryEvent",
    "RegistrySettings",
    "get_settings",
    "RegistryDatabase",

    # Constants
    "ErrorCode",
    "EventType",
]
