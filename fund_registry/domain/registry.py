"""
FundRegistry - Campaign Registry
==================================
State machine del ciclo di vita delle campagne.

Last Updated: 2026-10-18
Version: 1.0.0

Operations:
- Configurazione: set_admin, set_creation_fee, toggle_pause
- Admin campagna: add_campaign_admin, remove_campaign_admin
- Ciclo di vita: create_campaign, contribute, lock_funds, unlock_funds,
  end_campaign, withdraw_funds
- Letture: get_campaign, get_contribution, is_admin, is_paused,
  get_campaign_count, list_campaigns, get_events, snapshot

Ogni operazione mutante riceve caller e now espliciti, gira sotto un unico
lock, valida tutte le precondizioni, esegue il trasferimento sul ledger e
solo dopo scrive lo stato. Qualsiasi errore lascia lo stato invariato.
"""

from __future__ import annotations
from dataclasses import replace
from functools import wraps
from typing import Optional, Dict, List, Any
import threading

from fund_registry.config import RegistrySettings, get_settings
from fund_registry.constants import EventType, MAX_AMOUNT
from fund_registry.domain.ledger import ValueLedger, RecordingLedger
from fund_registry.domain.models import (
    AccountKey,
    Campaign,
    Contribution,
    CampaignAdmin,
    RegistryState,
    RegistryEvent,
)
from fund_registry.errors import (
    RegistryError,
    PausedError,
    UnauthorizedError,
    CampaignNotFoundError,
    InvalidAmountError,
    InvalidGoalError,
    InvalidDurationError,
    CapacityExceededError,
    CampaignEndedError,
    AlreadyEndedError,
    CampaignStillActiveError,
    DeadlinePassedError,
    FundsLockedError,
    InsufficientFundsError,
    SnapshotError,
)
from fund_registry.logging_setup import get_logger, AuditLogger
from fund_registry.utils.validators import (
    validate_amount,
    validate_campaign_name,
    validate_campaign_description,
)


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("registry")


def _operation(func):
    """Serializza l'operazione e logga i rifiuti a DEBUG"""

    @wraps(func)
    def wrapper(self, caller, now, *args, **kwargs):
        with self._lock:
            try:
                return func(self, caller, now, *args, **kwargs)
            except RegistryError as e:
                logger.debug(
                    f"{func.__name__} rejected: {e.code}",
                    extra_data={"caller": caller, "now": now, "error_code": int(e.error_code)}
                )
                raise

    return wrapper


# ============================================================================
# FUND REGISTRY
# ============================================================================

class FundRegistry:
    """
    Registry campagne di crowdfunding con fondi in custodia.

    Attributes:
        config: Settings registry
        ledger: Ledger esterno per i trasferimenti
        custody_account: Account ledger che custodisce i contributi

    Examples:
        >>> registry = FundRegistry(ledger=RecordingLedger())
        >>> cid = registry.create_campaign("ST1TEST", 100, "Health Fund", "", 10000, 100)
        >>> registry.contribute("ST2DONOR", 100, cid, 500)
        >>> registry.get_campaign(cid).raised
        500
    """

    def __init__(
        self,
        config: Optional[RegistrySettings] = None,
        ledger: Optional[ValueLedger] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.config = config or get_settings()
        self.ledger = ledger if ledger is not None else RecordingLedger()
        self.custody_account = self.config.custody_account
        self.audit_logger = audit_logger

        self._lock = threading.RLock()
        self._state = RegistryState(
            admin=self.config.registry_admin,
            creation_fee=self.config.creation_fee,
            max_campaigns=self.config.max_campaigns,
        )
        self._campaigns: Dict[int, Campaign] = {}
        self._contributions: Dict[AccountKey, Contribution] = {}
        self._admins: Dict[AccountKey, CampaignAdmin] = {}
        self._events: List[RegistryEvent] = []

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def _require_campaign(self, campaign_id: int) -> Campaign:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(
                f"Campaign {campaign_id} not found",
                details={"campaign_id": campaign_id}
            )
        return campaign

    def _require_registry_admin(self, caller: str) -> None:
        if caller != self._state.admin:
            raise UnauthorizedError(
                "Caller is not the registry administrator",
                details={"caller": caller}
            )

    def _require_creator(self, caller: str, campaign: Campaign) -> None:
        if caller != campaign.creator:
            raise UnauthorizedError(
                "Caller is not the campaign creator",
                details={"caller": caller, "campaign_id": campaign.campaign_id}
            )

    def _require_campaign_admin(self, caller: str, campaign: Campaign) -> None:
        # Grant table, non il campo creator
        if not self._has_grant(campaign.campaign_id, caller):
            raise UnauthorizedError(
                "Caller is not an active campaign admin",
                details={"caller": caller, "campaign_id": campaign.campaign_id}
            )

    def _require_not_paused(self) -> None:
        if self._state.paused:
            raise PausedError("Registry is paused")

    def _has_grant(self, campaign_id: int, account: str) -> bool:
        grant = self._admins.get((campaign_id, account))
        return grant is not None and grant.active

    def _emit(
        self,
        event_type: EventType,
        caller: str,
        now: int,
        campaign_id: Optional[int] = None,
        **payload: Any
    ) -> RegistryEvent:
        event = RegistryEvent(
            sequence=len(self._events) + 1,
            event_type=event_type,
            block_height=now,
            actor=caller,
            campaign_id=campaign_id,
            payload=payload,
        )
        self._events.append(event)

        logger.info(
            f"Registry event: {event_type.value}",
            extra_data={"campaign_id": campaign_id, "actor": caller, **payload}
        )
        if self.audit_logger is not None:
            self.audit_logger.log_event(event)

        return event

    # ========================================================================
    # CONFIGURATION OPERATIONS
    # ========================================================================

    @_operation
    def set_admin(self, caller: str, now: int, new_admin: str) -> None:
        """Sostituisci l'amministratore registry (solo amministratore)"""
        self._require_registry_admin(caller)

        previous = self._state.admin
        self._state = self._state.with_changes(admin=new_admin)
        self._emit(EventType.ADMIN_CHANGED, caller, now, previous=previous, admin=new_admin)

    @_operation
    def set_creation_fee(self, caller: str, now: int, new_fee: int) -> None:
        """
        Imposta la fee di creazione.

        Raises:
            UnauthorizedError: caller non amministratore
            InvalidAmountError: new_fee negativa o non intera
        """
        self._require_registry_admin(caller)
        validate_amount(new_fee, allow_zero=True, name="creation_fee")

        previous = self._state.creation_fee
        self._state = self._state.with_changes(creation_fee=new_fee)
        self._emit(EventType.FEE_CHANGED, caller, now, previous=previous, fee=new_fee)

    @_operation
    def toggle_pause(self, caller: str, now: int) -> bool:
        """
        Inverti il flag di pausa.

        La pausa blocca solo create_campaign e contribute; lock, unlock,
        end e withdraw restano disponibili.

        Returns:
            bool: Nuovo valore del flag
        """
        self._require_registry_admin(caller)

        paused = not self._state.paused
        self._state = self._state.with_changes(paused=paused)
        self._emit(EventType.PAUSE_TOGGLED, caller, now, paused=paused)
        return paused

    # ========================================================================
    # CAMPAIGN ADMIN OPERATIONS
    # ========================================================================

    @_operation
    def add_campaign_admin(self, caller: str, now: int, campaign_id: int, account: str) -> None:
        """Concedi grant admin ad `account` (solo creatore, idempotente)"""
        campaign = self._require_campaign(campaign_id)
        self._require_creator(caller, campaign)

        self._admins[(campaign_id, account)] = CampaignAdmin(active=True)
        self._emit(EventType.ADMIN_GRANTED, caller, now, campaign_id, account=account)

    @_operation
    def remove_campaign_admin(self, caller: str, now: int, campaign_id: int, account: str) -> None:
        """Revoca grant admin di `account` (solo creatore, idempotente)"""
        campaign = self._require_campaign(campaign_id)
        self._require_creator(caller, campaign)

        self._admins[(campaign_id, account)] = CampaignAdmin(active=False)
        self._emit(EventType.ADMIN_REVOKED, caller, now, campaign_id, account=account)

    # ========================================================================
    # CAMPAIGN CREATION
    # ========================================================================

    @_operation
    def create_campaign(
        self,
        caller: str,
        now: int,
        name: str,
        description: str,
        goal: int,
        duration: int
    ) -> int:
        """
        Crea una nuova campagna.

        Precondizioni (in ordine, vince il primo fallimento): registry non in
        pausa, capacita' disponibile, nome, descrizione, goal, durata.

        Effetti: fee trasferita caller -> amministratore, campagna salvata
        con deadline = now + duration, caller admin della campagna.

        Con fee a zero nessun trasferimento viene eseguito (il ledger
        rifiuta importi nulli). Se caller e amministratore coincidono il
        trasferimento avviene comunque e resta registrato.

        Returns:
            int: Id nuova campagna

        Raises:
            PausedError, CapacityExceededError, InvalidNameError,
            InvalidDescriptionError, InvalidGoalError, InvalidDurationError,
            TransferFailedError
        """
        self._require_not_paused()

        if not self._state.has_capacity():
            raise CapacityExceededError(
                f"Campaign limit reached ({self._state.max_campaigns})",
                details={"max_campaigns": self._state.max_campaigns}
            )

        validate_campaign_name(name, self.config.max_name_length)
        validate_campaign_description(description, self.config.max_description_length)
        validate_amount(goal, error_cls=InvalidGoalError, name="goal")
        validate_amount(duration, error_cls=InvalidDurationError, name="duration")

        fee = self._state.creation_fee
        if fee > 0:
            self.ledger.transfer(fee, caller, self._state.admin)

        campaign_id = self._state.next_campaign_id
        campaign = Campaign(
            campaign_id=campaign_id,
            name=name,
            description=description,
            goal=goal,
            deadline=now + duration,
            creator=caller,
        )
        self._campaigns[campaign_id] = campaign
        self._admins[(campaign_id, caller)] = CampaignAdmin(active=True)
        self._state = self._state.with_changes(next_campaign_id=campaign_id + 1)

        self._emit(
            EventType.CAMPAIGN_CREATED, caller, now, campaign_id,
            name=name, goal=goal, deadline=campaign.deadline, fee=fee
        )
        return campaign_id

    # ========================================================================
    # CONTRIBUTION
    # ========================================================================

    @_operation
    def contribute(self, caller: str, now: int, campaign_id: int, amount: int) -> None:
        """
        Contribuisci `amount` a una campagna.

        Il record Contribution del caller viene sovrascritto con l'ultimo
        contributo; raised accumula.

        Raises:
            CampaignNotFoundError, PausedError, CampaignEndedError,
            DeadlinePassedError, FundsLockedError,
            InvalidAmountError: amount non positivo o raised oltre MAX_AMOUNT
            TransferFailedError
        """
        campaign = self._require_campaign(campaign_id)
        self._require_not_paused()

        if not campaign.active:
            raise CampaignEndedError(
                f"Campaign {campaign_id} has ended",
                details={"campaign_id": campaign_id}
            )

        if now > campaign.deadline:
            raise DeadlinePassedError(
                f"Campaign {campaign_id} deadline {campaign.deadline} passed",
                details={"campaign_id": campaign_id, "deadline": campaign.deadline, "now": now}
            )

        if campaign.funds_locked:
            raise FundsLockedError(
                f"Campaign {campaign_id} funds are locked",
                details={"campaign_id": campaign_id}
            )

        validate_amount(amount)

        if campaign.raised + amount > MAX_AMOUNT:
            raise InvalidAmountError(
                f"Contribution would push raised above {MAX_AMOUNT}",
                details={"campaign_id": campaign_id, "amount": amount, "raised": campaign.raised}
            )

        self.ledger.transfer(amount, caller, self.custody_account)

        self._campaigns[campaign_id] = campaign.with_changes(raised=campaign.raised + amount)
        self._contributions[(campaign_id, caller)] = Contribution(amount=amount, timestamp=now)

        self._emit(EventType.CONTRIBUTION, caller, now, campaign_id, amount=amount)

    # ========================================================================
    # FUND LOCK / UNLOCK
    # ========================================================================

    def _set_funds_locked(self, caller: str, now: int, campaign_id: int, locked: bool) -> None:
        campaign = self._require_campaign(campaign_id)
        self._require_campaign_admin(caller, campaign)

        if not campaign.active:
            raise CampaignEndedError(
                f"Campaign {campaign_id} has ended",
                details={"campaign_id": campaign_id}
            )

        self._campaigns[campaign_id] = campaign.with_changes(funds_locked=locked)
        event_type = EventType.FUNDS_LOCKED if locked else EventType.FUNDS_UNLOCKED
        self._emit(event_type, caller, now, campaign_id)

    @_operation
    def lock_funds(self, caller: str, now: int, campaign_id: int) -> None:
        """Blocca i contributi (admin campagna, campagna attiva)"""
        self._set_funds_locked(caller, now, campaign_id, True)

    @_operation
    def unlock_funds(self, caller: str, now: int, campaign_id: int) -> None:
        """Sblocca i contributi (admin campagna, campagna attiva)"""
        self._set_funds_locked(caller, now, campaign_id, False)

    # ========================================================================
    # END CAMPAIGN
    # ========================================================================

    @_operation
    def end_campaign(self, caller: str, now: int, campaign_id: int) -> None:
        """
        Termina la campagna (active -> False, irreversibile).

        Raises:
            CampaignNotFoundError, UnauthorizedError, AlreadyEndedError
        """
        campaign = self._require_campaign(campaign_id)
        self._require_campaign_admin(caller, campaign)

        if not campaign.active:
            raise AlreadyEndedError(
                f"Campaign {campaign_id} already ended",
                details={"campaign_id": campaign_id}
            )

        self._campaigns[campaign_id] = campaign.with_changes(active=False)
        self._emit(EventType.CAMPAIGN_ENDED, caller, now, campaign_id, raised=campaign.raised)

    # ========================================================================
    # WITHDRAWAL
    # ========================================================================

    @_operation
    def withdraw_funds(
        self,
        caller: str,
        now: int,
        campaign_id: int,
        recipient: str,
        amount: int
    ) -> None:
        """
        Preleva `amount` dalla custodia verso `recipient`.

        Ammesso solo a campagna terminata, indipendentemente da lock e
        deadline. Ripetibile finche' raised non arriva a zero.

        Raises:
            CampaignNotFoundError, UnauthorizedError,
            CampaignStillActiveError, InsufficientFundsError,
            InvalidAmountError, TransferFailedError
        """
        campaign = self._require_campaign(campaign_id)
        self._require_campaign_admin(caller, campaign)

        if campaign.active:
            raise CampaignStillActiveError(
                f"Campaign {campaign_id} is still active",
                details={"campaign_id": campaign_id}
            )

        if isinstance(amount, int) and not isinstance(amount, bool) and amount > campaign.raised:
            raise InsufficientFundsError(
                f"Requested {amount} but only {campaign.raised} available",
                details={"campaign_id": campaign_id, "amount": amount, "raised": campaign.raised}
            )

        validate_amount(amount)

        self.ledger.transfer(amount, self.custody_account, recipient)

        self._campaigns[campaign_id] = campaign.with_changes(raised=campaign.raised - amount)
        self._emit(
            EventType.FUNDS_WITHDRAWN, caller, now, campaign_id,
            recipient=recipient, amount=amount
        )

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    def get_campaign(self, campaign_id: int) -> Optional[Campaign]:
        """Campagna per id, None se assente"""
        with self._lock:
            return self._campaigns.get(campaign_id)

    def get_contribution(self, campaign_id: int, contributor: str) -> Optional[Contribution]:
        """Ultimo contributo di `contributor`, None se assente"""
        with self._lock:
            return self._contributions.get((campaign_id, contributor))

    def is_admin(self, campaign_id: int, account: str) -> bool:
        """True se `account` ha un grant admin attivo sulla campagna"""
        with self._lock:
            return self._has_grant(campaign_id, account)

    def is_paused(self) -> bool:
        with self._lock:
            return self._state.paused

    def get_campaign_count(self) -> int:
        """
        Valore del contatore id: prossimo id da assegnare.

        Parte da 1 su registry vuoto, quindi vale campagne create + 1.
        """
        with self._lock:
            return self._state.next_campaign_id

    def get_admin(self) -> str:
        with self._lock:
            return self._state.admin

    def get_creation_fee(self) -> int:
        with self._lock:
            return self._state.creation_fee

    def get_state(self) -> RegistryState:
        with self._lock:
            return self._state

    def list_campaigns(self, active_only: bool = False) -> List[Campaign]:
        """Campagne ordinate per id"""
        with self._lock:
            campaigns = [self._campaigns[cid] for cid in sorted(self._campaigns)]
        if active_only:
            campaigns = [c for c in campaigns if c.active]
        return campaigns

    def get_events(self, campaign_id: Optional[int] = None) -> List[RegistryEvent]:
        """Journal eventi, opzionalmente filtrato per campagna"""
        with self._lock:
            events = [
                replace(e, payload=dict(e.payload))
                for e in self._events
                if campaign_id is None or e.campaign_id == campaign_id
            ]
        return events

    # ========================================================================
    # SNAPSHOT
    # ========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """
        Stato completo come dict serializzabile.

        Returns:
            dict: state, campaigns, contributions, campaign_admins, events
        """
        with self._lock:
            return {
                "state": self._state.to_dict(),
                "campaigns": [
                    self._campaigns[cid].to_dict() for cid in sorted(self._campaigns)
                ],
                "contributions": [
                    {"campaign_id": cid, "contributor": account, **c.to_dict()}
                    for (cid, account), c in sorted(self._contributions.items())
                ],
                "campaign_admins": [
                    {"campaign_id": cid, "account": account, **grant.to_dict()}
                    for (cid, account), grant in sorted(self._admins.items())
                ],
                "events": [e.to_dict() for e in self._events],
            }

    @classmethod
    def from_snapshot(
        cls,
        data: Dict[str, Any],
        config: Optional[RegistrySettings] = None,
        ledger: Optional[ValueLedger] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> FundRegistry:
        """
        Ricostruisci un registry da snapshot().

        Raises:
            SnapshotError: Snapshot incompleto o malformato
        """
        registry = cls(config=config, ledger=ledger, audit_logger=audit_logger)

        try:
            registry._state = RegistryState.from_dict(data["state"])
            for item in data.get("campaigns", []):
                campaign = Campaign.from_dict(item)
                registry._campaigns[campaign.campaign_id] = campaign
            for item in data.get("contributions", []):
                key = (int(item["campaign_id"]), item["contributor"])
                registry._contributions[key] = Contribution.from_dict(item)
            for item in data.get("campaign_admins", []):
                key = (int(item["campaign_id"]), item["account"])
                registry._admins[key] = CampaignAdmin(active=bool(item["active"]))
            registry._events = [RegistryEvent.from_dict(e) for e in data.get("events", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(
                f"Invalid registry snapshot: {e}",
                code="INVALID_SNAPSHOT"
            ) from e

        if registry._campaigns and max(registry._campaigns) >= registry._state.next_campaign_id:
            raise SnapshotError(
                "Snapshot next_campaign_id does not exceed stored campaign ids",
                code="INVALID_SNAPSHOT",
                details={"next_campaign_id": registry._state.next_campaign_id}
            )

        logger.info(
            "Registry restored from snapshot",
            extra_data={"campaigns": len(registry._campaigns), "events": len(registry._events)}
        )
        return registry

    def __repr__(self) -> str:
        return (
            f"FundRegistry(admin={self._state.admin}, "
            f"campaigns={len(self._campaigns)}, paused={self._state.paused})"
        )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = ["FundRegistry"]
