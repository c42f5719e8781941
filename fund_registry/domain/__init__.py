"""
FundRegistry - Domain Package
===============================
Modelli, ledger e state machine del registry.
"""

from fund_registry.domain.models import (
    Campaign,
    Contribution,
    CampaignAdmin,
    RegistryState,
    RegistryEvent,
)
from fund_registry.domain.ledger import (
    Transfer,
    ValueLedger,
    RecordingLedger,
    BalanceLedger,
)
from fund_registry.domain.registry import FundRegistry

__all__ = [
    "Campaign",
    "Contribution",
    "CampaignAdmin",
    "RegistryState",
    "RegistryEvent",
    "Transfer",
    "ValueLedger",
    "RecordingLedger",
    "BalanceLedger",
    "FundRegistry",
]
