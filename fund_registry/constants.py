"""
FundRegistry - Core Constants
===============================
Costanti immutabili del registry.

Last Updated: 2026-10-18
Version: 1.0.0
"""

from enum import IntEnum, Enum
from typing import Final


# ============================================================================
# IDENTIFICAZIONE PROGETTO
# ============================================================================

PROJECT_NAME: Final[str] = "FundRegistry"
SOFTWARE_VERSION: Final[str] = "1.0.0"


# ============================================================================
# REGISTRY DEFAULTS
# ============================================================================

# Amministratore registry al deploy
DEFAULT_REGISTRY_ADMIN: Final[str] = "ST1TEST"

# Fee flat per creazione campagna
DEFAULT_CREATION_FEE: Final[int] = 1000

# Tetto campagne: gli id vanno da 1 a MAX-1
DEFAULT_MAX_CAMPAIGNS: Final[int] = 1000

# Primo id assegnato
FIRST_CAMPAIGN_ID: Final[int] = 1

# Account custodia fondi contribuiti
DEFAULT_CUSTODY_ACCOUNT: Final[str] = "registry"


# ============================================================================
# VALIDATION LIMITS
# ============================================================================

MAX_NAME_LENGTH: Final[int] = 100
MAX_DESCRIPTION_LENGTH: Final[int] = 500

# Importi uint128
MAX_AMOUNT: Final[int] = 2**128 - 1


# ============================================================================
# ERROR CODES
# ============================================================================

class ErrorCode(IntEnum):
    """Codici errore registry"""
    UNKNOWN = 0
    PAUSED = 100
    UNAUTHORIZED = 101
    NOT_FOUND = 102
    INVALID_AMOUNT = 103
    INVALID_GOAL = 104
    INVALID_DURATION = 105
    INVALID_NAME = 106
    INVALID_DESCRIPTION = 107
    CAMPAIGN_ENDED = 108
    DEADLINE_PASSED = 109
    CAPACITY_EXCEEDED = 110
    FUNDS_LOCKED = 111
    ALREADY_ENDED = 112
    CAMPAIGN_STILL_ACTIVE = 113
    INSUFFICIENT_FUNDS = 114


# ============================================================================
# EVENT TYPES
# ============================================================================

class EventType(Enum):
    """Tipi evento journal registry"""
    ADMIN_CHANGED = "admin_changed"
    FEE_CHANGED = "fee_changed"
    PAUSE_TOGGLED = "pause_toggled"
    CAMPAIGN_CREATED = "campaign_created"
    ADMIN_GRANTED = "admin_granted"
    ADMIN_REVOKED = "admin_revoked"
    CONTRIBUTION = "contribution"
    FUNDS_LOCKED = "funds_locked"
    FUNDS_UNLOCKED = "funds_unlocked"
    CAMPAIGN_ENDED = "campaign_ended"
    FUNDS_WITHDRAWN = "funds_withdrawn"


# ============================================================================
# HELPERS
# ============================================================================

def format_amount(amount: int) -> str:
    """
    Formatta amount per display.

    Examples:
        >>> format_amount(1500000)
        '1,500,000'
    """
    return f"{amount:,}"


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "PROJECT_NAME",
    "SOFTWARE_VERSION",
    "DEFAULT_REGISTRY_ADMIN",
    "DEFAULT_CREATION_FEE",
    "DEFAULT_MAX_CAMPAIGNS",
    "FIRST_CAMPAIGN_ID",
    "DEFAULT_CUSTODY_ACCOUNT",
    "MAX_NAME_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "MAX_AMOUNT",
    "ErrorCode",
    "EventType",
    "format_amount",
]
