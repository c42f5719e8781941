"""
FundRegistry - Models & Errors Tests
======================================
Unit tests for domain models and error hierarchy.
"""

import dataclasses

import pytest
from fund_registry.constants import ErrorCode, EventType, format_amount
from fund_registry.domain.models import Campaign, Contribution, RegistryState, RegistryEvent
from fund_registry.errors import (
    RegistryError,
    PausedError,
    InvalidGoalError,
    InsufficientFundsError,
    ValidationError,
    LifecycleError,
    DeadlinePassedError,
    error_for_code,
    format_validation_error,
)


class TestCampaignModel:
    """Test Campaign dataclass"""

    def _campaign(self, **kwargs):
        data = dict(campaign_id=1, name="Health Fund", description="", goal=10000, deadline=200, creator="ST1TEST")
        data.update(kwargs)
        return Campaign(**data)

    def test_defaults(self):
        campaign = self._campaign()

        assert campaign.raised == 0
        assert campaign.active is True
        assert campaign.funds_locked is False

    def test_frozen(self):
        campaign = self._campaign()

        with pytest.raises(dataclasses.FrozenInstanceError):
            campaign.raised = 10

    def test_with_changes(self):
        campaign = self._campaign()
        updated = campaign.with_changes(raised=500)

        assert updated.raised == 500
        assert campaign.raised == 0

    def test_is_open(self):
        campaign = self._campaign()

        assert campaign.is_open(200) is True
        assert campaign.is_open(201) is False
        assert campaign.with_changes(funds_locked=True).is_open(100) is False
        assert campaign.with_changes(active=False).is_open(100) is False

    def test_dict_roundtrip(self):
        campaign = self._campaign(raised=2**100, active=False)

        assert Campaign.from_dict(campaign.to_dict()) == campaign


class TestStateModels:
    """Test RegistryState and RegistryEvent"""

    def test_capacity(self):
        state = RegistryState(admin="ST1TEST", creation_fee=1000, max_campaigns=3)

        assert state.has_capacity() is True
        assert state.with_changes(next_campaign_id=3).has_capacity() is False

    def test_event_from_dict(self):
        event = RegistryEvent.from_dict({
            "sequence": 1,
            "event_type": "contribution",
            "block_height": 150,
            "actor": "ST2DONOR",
            "campaign_id": 1,
            "payload": {"amount": 500},
        })

        assert event.event_type == EventType.CONTRIBUTION
        assert event.to_dict()["event_type"] == "contribution"

    def test_contribution_dict(self):
        assert Contribution.from_dict({"amount": "500", "timestamp": 100}) == Contribution(500, 100)


class TestErrors:
    """Test error hierarchy"""

    def test_codes(self):
        assert PausedError().error_code == ErrorCode.PAUSED == 100
        assert InsufficientFundsError().error_code == 114

    def test_default_message(self):
        error = PausedError()

        assert error.message == "Registry in pausa"
        assert error.code == "PAUSED"

    def test_to_dict(self):
        error = DeadlinePassedError("too late", details={"deadline": 200})

        assert error.to_dict() == {
            "error": "DEADLINE_PASSED",
            "message": "too late",
            "details": {"deadline": 200},
            "error_code": 109,
        }

    def test_hierarchy(self):
        assert issubclass(InvalidGoalError, ValidationError)
        assert issubclass(DeadlinePassedError, LifecycleError)
        assert issubclass(LifecycleError, RegistryError)

    def test_error_for_code(self):
        assert error_for_code(100) is PausedError
        assert error_for_code(104) is InvalidGoalError
        assert error_for_code(999) is RegistryError

    def test_format_validation_error(self):
        error = format_validation_error(InvalidGoalError, "goal", 0, "positive integer")

        assert isinstance(error, InvalidGoalError)
        assert error.details["field"] == "goal"

    def test_format_amount(self):
        assert format_amount(1234567) == "1,234,567"
