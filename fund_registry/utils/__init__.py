"""
FundRegistry - Utilities Package
==================================
Common utility functions and helpers.
"""

from fund_registry.utils.serialization import (
    serialize_to_json,
    deserialize_from_json,
)
from fund_registry.utils.validators import (
    validate_amount,
    validate_string,
    validate_campaign_name,
    validate_campaign_description,
)

__all__ = [
    # Serialization
    "serialize_to_json",
    "deserialize_from_json",

    # Validators
    "validate_amount",
    "validate_string",
    "validate_campaign_name",
    "validate_campaign_description",
]
