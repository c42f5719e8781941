"""
FundRegistry - Fund Lifecycle Tests
=====================================
Unit tests for lock/unlock, end and withdraw.
"""

import pytest
from fund_registry.constants import EventType
from fund_registry.errors import (
    CampaignNotFoundError,
    UnauthorizedError,
    CampaignEndedError,
    AlreadyEndedError,
    CampaignStillActiveError,
    InsufficientFundsError,
    InvalidAmountError,
    TransferFailedError,
)


class TestLockFunds:
    """Test lock_funds / unlock_funds"""

    def test_lock_unlock(self, registry, campaign_id):
        registry.lock_funds("ST1TEST", 110, campaign_id)
        assert registry.get_campaign(campaign_id).funds_locked is True

        registry.unlock_funds("ST1TEST", 111, campaign_id)
        assert registry.get_campaign(campaign_id).funds_locked is False

        types = [e.event_type for e in registry.get_events(campaign_id)]
        assert types[-2:] == [EventType.FUNDS_LOCKED, EventType.FUNDS_UNLOCKED]

    def test_lock_is_idempotent(self, registry, campaign_id):
        registry.lock_funds("ST1TEST", 110, campaign_id)
        registry.lock_funds("ST1TEST", 111, campaign_id)

        assert registry.get_campaign(campaign_id).funds_locked is True

    def test_contribute_after_unlock(self, registry, campaign_id):
        registry.lock_funds("ST1TEST", 110, campaign_id)
        registry.unlock_funds("ST1TEST", 111, campaign_id)
        registry.contribute("ST2DONOR", 112, campaign_id, 50)

        assert registry.get_campaign(campaign_id).raised == 50

    def test_lock_not_found(self, registry):
        with pytest.raises(CampaignNotFoundError):
            registry.lock_funds("ST1TEST", 110, 7)

    def test_lock_unauthorized(self, registry, campaign_id):
        with pytest.raises(UnauthorizedError):
            registry.lock_funds("ST2DONOR", 110, campaign_id)

        assert registry.get_campaign(campaign_id).funds_locked is False

    def test_registry_admin_is_not_campaign_admin(self, registry):
        """Test registry admin has no rights over other creators' campaigns"""
        cid = registry.create_campaign("ST2CREATOR", 10, "Fund", "", 100, 10)

        with pytest.raises(UnauthorizedError):
            registry.lock_funds("ST1TEST", 11, cid)

    def test_lock_ended_campaign(self, registry, campaign_id):
        registry.end_campaign("ST1TEST", 110, campaign_id)

        with pytest.raises(CampaignEndedError):
            registry.lock_funds("ST1TEST", 111, campaign_id)
        with pytest.raises(CampaignEndedError):
            registry.unlock_funds("ST1TEST", 111, campaign_id)

    def test_unauthorized_wins_over_ended(self, registry, campaign_id):
        registry.end_campaign("ST1TEST", 110, campaign_id)

        with pytest.raises(UnauthorizedError):
            registry.lock_funds("ST2DONOR", 111, campaign_id)


class TestEndCampaign:
    """Test end_campaign"""

    def test_end(self, registry, campaign_id):
        registry.end_campaign("ST1TEST", 150, campaign_id)

        campaign = registry.get_campaign(campaign_id)
        assert campaign.active is False
        assert registry.list_campaigns(active_only=True) == []
        assert registry.get_events(campaign_id)[-1].event_type == EventType.CAMPAIGN_ENDED

    def test_end_before_deadline_or_after(self, registry, campaign_id):
        """Test end ignores the deadline"""
        registry.end_campaign("ST1TEST", 5000, campaign_id)

        assert registry.get_campaign(campaign_id).active is False

    def test_end_twice(self, registry, campaign_id):
        registry.end_campaign("ST1TEST", 150, campaign_id)

        with pytest.raises(AlreadyEndedError) as exc_info:
            registry.end_campaign("ST1TEST", 151, campaign_id)

        assert exc_info.value.error_code == 112

    def test_end_unauthorized(self, registry, campaign_id):
        with pytest.raises(UnauthorizedError):
            registry.end_campaign("ST2DONOR", 150, campaign_id)

        assert registry.get_campaign(campaign_id).active is True

    def test_end_not_found(self, registry):
        with pytest.raises(CampaignNotFoundError):
            registry.end_campaign("ST1TEST", 150, 3)

    def test_end_locked_campaign(self, registry, campaign_id):
        """Test lock does not prevent ending"""
        registry.lock_funds("ST1TEST", 110, campaign_id)
        registry.end_campaign("ST1TEST", 111, campaign_id)

        campaign = registry.get_campaign(campaign_id)
        assert campaign.active is False
        assert campaign.funds_locked is True


class TestWithdrawFunds:
    """Test withdraw_funds"""

    def test_withdraw(self, registry, ledger, ended_campaign_id):
        registry.withdraw_funds("ST1TEST", 120, ended_campaign_id, "ST5CLINIC", 300)

        assert registry.get_campaign(ended_campaign_id).raised == 200

        transfer = ledger.transfers[-1]
        assert (transfer.amount, transfer.sender, transfer.recipient) == (300, "contract", "ST5CLINIC")

        event = registry.get_events(ended_campaign_id)[-1]
        assert event.event_type == EventType.FUNDS_WITHDRAWN
        assert event.payload == {"recipient": "ST5CLINIC", "amount": 300}

    def test_repeated_withdrawals_drain(self, registry, ended_campaign_id):
        registry.withdraw_funds("ST1TEST", 120, ended_campaign_id, "ST5CLINIC", 300)
        registry.withdraw_funds("ST1TEST", 121, ended_campaign_id, "ST6LAB", 200)

        assert registry.get_campaign(ended_campaign_id).raised == 0

        with pytest.raises(InsufficientFundsError):
            registry.withdraw_funds("ST1TEST", 122, ended_campaign_id, "ST5CLINIC", 1)

    def test_withdraw_active_campaign(self, registry, campaign_id):
        registry.contribute("ST2DONOR", 110, campaign_id, 500)

        with pytest.raises(CampaignStillActiveError) as exc_info:
            registry.withdraw_funds("ST1TEST", 120, campaign_id, "ST5CLINIC", 100)

        assert exc_info.value.error_code == 113

    def test_withdraw_active_after_deadline(self, registry, campaign_id):
        """Test deadline alone does not release funds"""
        registry.contribute("ST2DONOR", 110, campaign_id, 500)

        with pytest.raises(CampaignStillActiveError):
            registry.withdraw_funds("ST1TEST", 500, campaign_id, "ST5CLINIC", 100)

    def test_withdraw_insufficient(self, registry, ended_campaign_id):
        with pytest.raises(InsufficientFundsError) as exc_info:
            registry.withdraw_funds("ST1TEST", 120, ended_campaign_id, "ST5CLINIC", 501)

        assert exc_info.value.error_code == 114
        assert registry.get_campaign(ended_campaign_id).raised == 500

    @pytest.mark.parametrize("amount", [0, -1])
    def test_withdraw_invalid_amount(self, registry, ended_campaign_id, amount):
        with pytest.raises(InvalidAmountError):
            registry.withdraw_funds("ST1TEST", 120, ended_campaign_id, "ST5CLINIC", amount)

    def test_withdraw_unauthorized(self, registry, ended_campaign_id):
        with pytest.raises(UnauthorizedError):
            registry.withdraw_funds("ST2DONOR", 120, ended_campaign_id, "ST2DONOR", 100)

    def test_withdraw_not_found(self, registry):
        with pytest.raises(CampaignNotFoundError):
            registry.withdraw_funds("ST1TEST", 120, 9, "ST5CLINIC", 100)

    def test_withdraw_locked_campaign(self, registry, campaign_id):
        """Test locked funds can still be withdrawn once ended"""
        registry.contribute("ST2DONOR", 110, campaign_id, 500)
        registry.lock_funds("ST1TEST", 111, campaign_id)
        registry.end_campaign("ST1TEST", 112, campaign_id)

        registry.withdraw_funds("ST1TEST", 113, campaign_id, "ST5CLINIC", 500)

        assert registry.get_campaign(campaign_id).raised == 0

    def test_withdraw_transfer_failure(self, registry, ended_campaign_id):
        """Test ledger failure keeps raised intact"""
        registry.ledger.fail_for.add("contract")

        with pytest.raises(TransferFailedError):
            registry.withdraw_funds("ST1TEST", 120, ended_campaign_id, "ST5CLINIC", 100)

        assert registry.get_campaign(ended_campaign_id).raised == 500


class TestCampaignAdmins:
    """Test admin grants"""

    def test_add_admin(self, registry, campaign_id):
        registry.add_campaign_admin("ST1TEST", 110, campaign_id, "ST4OPS")

        assert registry.is_admin(campaign_id, "ST4OPS") is True
        registry.lock_funds("ST4OPS", 111, campaign_id)
        assert registry.get_campaign(campaign_id).funds_locked is True

    def test_add_admin_idempotent(self, registry, campaign_id):
        registry.add_campaign_admin("ST1TEST", 110, campaign_id, "ST4OPS")
        registry.add_campaign_admin("ST1TEST", 111, campaign_id, "ST4OPS")

        assert registry.is_admin(campaign_id, "ST4OPS") is True

    def test_remove_admin(self, registry, campaign_id):
        registry.add_campaign_admin("ST1TEST", 110, campaign_id, "ST4OPS")
        registry.remove_campaign_admin("ST1TEST", 111, campaign_id, "ST4OPS")

        assert registry.is_admin(campaign_id, "ST4OPS") is False
        with pytest.raises(UnauthorizedError):
            registry.end_campaign("ST4OPS", 112, campaign_id)

    def test_remove_never_granted(self, registry, campaign_id):
        """Test revoking an absent grant is a no-op"""
        registry.remove_campaign_admin("ST1TEST", 110, campaign_id, "ST7NOBODY")

        assert registry.is_admin(campaign_id, "ST7NOBODY") is False

    def test_only_creator_manages_admins(self, registry, campaign_id):
        """Test granted admins cannot grant further"""
        registry.add_campaign_admin("ST1TEST", 110, campaign_id, "ST4OPS")

        with pytest.raises(UnauthorizedError):
            registry.add_campaign_admin("ST4OPS", 111, campaign_id, "ST8FRIEND")
        with pytest.raises(UnauthorizedError):
            registry.remove_campaign_admin("ST4OPS", 111, campaign_id, "ST1TEST")

    def test_creator_can_revoke_and_restore_self(self, registry, campaign_id):
        """Test creator keeps grant management after revoking own grant"""
        registry.remove_campaign_admin("ST1TEST", 110, campaign_id, "ST1TEST")

        with pytest.raises(UnauthorizedError):
            registry.lock_funds("ST1TEST", 111, campaign_id)

        registry.add_campaign_admin("ST1TEST", 112, campaign_id, "ST1TEST")
        registry.lock_funds("ST1TEST", 113, campaign_id)

    def test_admin_on_missing_campaign(self, registry):
        with pytest.raises(CampaignNotFoundError):
            registry.add_campaign_admin("ST1TEST", 110, 5, "ST4OPS")

    def test_grant_events(self, registry, campaign_id):
        registry.add_campaign_admin("ST1TEST", 110, campaign_id, "ST4OPS")
        registry.remove_campaign_admin("ST1TEST", 111, campaign_id, "ST4OPS")

        events = registry.get_events(campaign_id)[-2:]
        assert [e.event_type for e in events] == [EventType.ADMIN_GRANTED, EventType.ADMIN_REVOKED]
        assert all(e.payload == {"account": "ST4OPS"} for e in events)
