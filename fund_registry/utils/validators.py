"""
FundRegistry - Input Validators
=================================
Validation functions for registry inputs.

Each validator returns True or raises the RegistryError subclass the
caller passes in (or the field's natural error), so the registry can keep
its first-failure-wins precondition order.
"""

from typing import Type

from fund_registry.constants import MAX_AMOUNT, MAX_NAME_LENGTH, MAX_DESCRIPTION_LENGTH
from fund_registry.errors import (
    RegistryError,
    InvalidAmountError,
    InvalidNameError,
    InvalidDescriptionError,
    format_validation_error,
)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ============================================================================
# AMOUNT VALIDATION
# ============================================================================

def validate_amount(
    amount: int,
    allow_zero: bool = False,
    error_cls: Type[RegistryError] = InvalidAmountError,
    name: str = "amount"
) -> bool:
    """
    Validate an integer amount.

    Args:
        amount: Amount (ledger base units)
        allow_zero: Accept zero
        error_cls: Error raised on failure
        name: Field name (for error messages)

    Returns:
        bool: True if valid

    Raises:
        RegistryError: error_cls if invalid

    Examples:
        >>> validate_amount(500)
        True
        >>> validate_amount(0, allow_zero=True)
        True
    """
    if not _is_int(amount):
        raise format_validation_error(error_cls, name, amount, "integer")

    if amount < 0:
        raise format_validation_error(error_cls, name, amount, "non-negative integer")

    if not allow_zero and amount == 0:
        raise format_validation_error(error_cls, name, amount, "positive integer")

    if amount > MAX_AMOUNT:
        raise format_validation_error(error_cls, name, amount, f"at most {MAX_AMOUNT}")

    return True


# ============================================================================
# STRING VALIDATION
# ============================================================================

def validate_string(
    value: str,
    min_length: int = 1,
    max_length: int = 1000,
    error_cls: Type[RegistryError] = InvalidNameError,
    name: str = "string"
) -> bool:
    """
    Validate string type and length.

    Raises:
        RegistryError: error_cls if invalid
    """
    if not isinstance(value, str):
        raise format_validation_error(error_cls, name, value, "string")

    if len(value) < min_length:
        raise error_cls(
            f"{name} too short: {len(value)} < {min_length}",
            details={"field": name, "length": len(value)}
        )

    if len(value) > max_length:
        raise error_cls(
            f"{name} too long: {len(value)} > {max_length}",
            details={"field": name, "length": len(value)}
        )

    return True


def validate_campaign_name(name: str, max_length: int = MAX_NAME_LENGTH) -> bool:
    """
    Validate campaign name: non-empty, at most max_length characters.

    Examples:
        >>> validate_campaign_name("Health Fund")
        True
    """
    return validate_string(
        name,
        min_length=1,
        max_length=max_length,
        error_cls=InvalidNameError,
        name="name"
    )


def validate_campaign_description(
    description: str,
    max_length: int = MAX_DESCRIPTION_LENGTH
) -> bool:
    """Validate campaign description: may be empty, at most max_length characters."""
    return validate_string(
        description,
        min_length=0,
        max_length=max_length,
        error_cls=InvalidDescriptionError,
        name="description"
    )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "validate_amount",
    "validate_string",
    "validate_campaign_name",
    "validate_campaign_description",
]
