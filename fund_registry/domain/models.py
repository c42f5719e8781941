"""
FundRegistry - Core Domain Models
===================================
Strutture dati fondamentali del registry.

Last Updated: 2026-10-18
Version: 1.0.0

Models:
- Campaign: Campagna di raccolta fondi
- Contribution: Ultimo contributo di un account a una campagna
- CampaignAdmin: Grant admin per (campagna, account)
- RegistryState: Configurazione globale del registry
- RegistryEvent: Voce del journal eventi

Tutte le strutture sono immutabili (frozen): il registry sostituisce il
record ad ogni scrittura, quindi le letture restituiscono snapshot.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, Tuple

from fund_registry.constants import EventType, FIRST_CAMPAIGN_ID


# Chiave composita (campaign_id, account)
AccountKey = Tuple[int, str]


# ============================================================================
# CAMPAIGN
# ============================================================================

@dataclass(frozen=True)
class Campaign:
    """
    Campagna di raccolta fondi.

    Attributes:
        campaign_id (int): Id assegnato dal registry (da 1, mai riusato)
        name (str): Nome (1-100 caratteri)
        description (str): Descrizione (max 500 caratteri)
        goal (int): Obiettivo raccolta (> 0)
        raised (int): Fondi raccolti e non ancora prelevati
        deadline (int): Ultimo block height che accetta contributi
        active (bool): False dopo end_campaign, irreversibile
        creator (str): Account creatore
        funds_locked (bool): Se True i contributi sono rifiutati

    Examples:
        >>> campaign = Campaign(
        ...     campaign_id=1, name="Health Fund", description="",
        ...     goal=10000, deadline=200, creator="ST1TEST"
        ... )
        >>> campaign.progress_percent()
        0.0
    """

    campaign_id: int
    name: str
    description: str
    goal: int
    deadline: int
    creator: str
    raised: int = 0
    active: bool = True
    funds_locked: bool = False

    def with_changes(self, **changes) -> Campaign:
        """Copia con campi modificati"""
        return replace(self, **changes)

    def is_open(self, now: int) -> bool:
        """True se la campagna accetta contributi a `now` (pausa esclusa)"""
        return self.active and not self.funds_locked and now <= self.deadline

    def goal_reached(self) -> bool:
        return self.raised >= self.goal

    def progress_percent(self) -> float:
        """Percentuale raccolta rispetto al goal"""
        return round(self.raised * 100 / self.goal, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "name": self.name,
            "description": self.description,
            "goal": self.goal,
            "raised": self.raised,
            "deadline": self.deadline,
            "active": self.active,
            "creator": self.creator,
            "funds_locked": self.funds_locked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Campaign:
        return cls(
            campaign_id=int(data["campaign_id"]),
            name=data["name"],
            description=data["description"],
            goal=int(data["goal"]),
            raised=int(data["raised"]),
            deadline=int(data["deadline"]),
            active=bool(data["active"]),
            creator=data["creator"],
            funds_locked=bool(data["funds_locked"]),
        )


# ============================================================================
# CONTRIBUTION
# ============================================================================

@dataclass(frozen=True)
class Contribution:
    """
    Ultimo contributo di un account a una campagna.

    Un nuovo contributo sovrascrive il record (non accumula): solo
    Campaign.raised accumula.
    """

    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Contribution:
        return cls(amount=int(data["amount"]), timestamp=int(data["timestamp"]))


# ============================================================================
# CAMPAIGN ADMIN GRANT
# ============================================================================

@dataclass(frozen=True)
class CampaignAdmin:
    """Grant admin per (campaign_id, account)"""

    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"active": self.active}


# ============================================================================
# REGISTRY STATE
# ============================================================================

@dataclass(frozen=True)
class RegistryState:
    """
    Configurazione globale del registry.

    Attributes:
        admin (str): Amministratore registry
        creation_fee (int): Fee flat addebitata a create_campaign
        paused (bool): Blocca creazione e contributi
        next_campaign_id (int): Prossimo id da assegnare
        max_campaigns (int): Tetto esclusivo per next_campaign_id
    """

    admin: str
    creation_fee: int
    max_campaigns: int
    paused: bool = False
    next_campaign_id: int = FIRST_CAMPAIGN_ID

    def with_changes(self, **changes) -> RegistryState:
        return replace(self, **changes)

    def has_capacity(self) -> bool:
        return self.next_campaign_id < self.max_campaigns

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self.admin,
            "creation_fee": self.creation_fee,
            "paused": self.paused,
            "next_campaign_id": self.next_campaign_id,
            "max_campaigns": self.max_campaigns,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RegistryState:
        return cls(
            admin=data["admin"],
            creation_fee=int(data["creation_fee"]),
            paused=bool(data["paused"]),
            next_campaign_id=int(data["next_campaign_id"]),
            max_campaigns=int(data["max_campaigns"]),
        )


# ============================================================================
# REGISTRY EVENT
# ============================================================================

@dataclass(frozen=True)
class RegistryEvent:
    """
    Voce append-only del journal registry.

    Attributes:
        sequence (int): Progressivo da 1
        event_type (EventType): Tipo evento
        block_height (int): `now` dell'operazione
        actor (str): Caller dell'operazione
        campaign_id (Optional[int]): Campagna coinvolta
        payload (dict): Dati specifici evento
    """

    sequence: int
    event_type: EventType
    block_height: int
    actor: str
    campaign_id: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "block_height": self.block_height,
            "actor": self.actor,
            "campaign_id": self.campaign_id,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RegistryEvent:
        campaign_id = data.get("campaign_id")
        return cls(
            sequence=int(data["sequence"]),
            event_type=EventType(data["event_type"]),
            block_height=int(data["block_height"]),
            actor=data["actor"],
            campaign_id=int(campaign_id) if campaign_id is not None else None,
            payload=dict(data.get("payload") or {}),
        )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "AccountKey",
    "Campaign",
    "Contribution",
    "CampaignAdmin",
    "RegistryState",
    "RegistryEvent",
]
