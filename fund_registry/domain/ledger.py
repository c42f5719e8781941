"""
FundRegistry - Value Ledger
=============================
Capability esterna di trasferimento valore usata dal registry.

Last Updated: 2026-10-18
Version: 1.0.0

Il registry chiama transfer(amount, sender, recipient) prima di scrivere il
proprio stato: se il trasferimento solleva TransferFailedError l'operazione
viene abortita senza mutazioni.

Implementations:
- RecordingLedger: registra ogni trasferimento, non fallisce mai
- BalanceLedger: saldi per account, rifiuta scoperti
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional
import threading

from fund_registry.errors import TransferFailedError
from fund_registry.logging_setup import get_logger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("ledger")


# ============================================================================
# TRANSFER RECORD
# ============================================================================

@dataclass(frozen=True)
class Transfer:
    """Trasferimento eseguito (amount, sender -> recipient)"""

    amount: int
    sender: str
    recipient: str

    def to_dict(self) -> dict:
        return {"amount": self.amount, "from": self.sender, "to": self.recipient}


# ============================================================================
# BASE LEDGER
# ============================================================================

class ValueLedger(ABC):
    """
    Ledger astratto: debito/credito atomico, tutto-o-niente.

    Le sottoclassi implementano _apply(); transfer() valida gli argomenti,
    serializza le chiamate e mantiene lo storico dei trasferimenti riusciti.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._transfers: List[Transfer] = []

    def transfer(self, amount: int, sender: str, recipient: str) -> Transfer:
        """
        Trasferisci `amount` da sender a recipient.

        Returns:
            Transfer: Record del trasferimento

        Raises:
            TransferFailedError: Se il trasferimento non puo' essere eseguito
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise TransferFailedError(
                f"Transfer amount must be a positive integer, got {amount!r}",
                code="INVALID_TRANSFER_AMOUNT",
                details={"amount": amount}
            )
        if not sender or not recipient:
            raise TransferFailedError(
                "Transfer requires sender and recipient",
                code="INVALID_TRANSFER_PARTY",
                details={"from": sender, "to": recipient}
            )

        with self._lock:
            self._apply(amount, sender, recipient)
            record = Transfer(amount=amount, sender=sender, recipient=recipient)
            self._transfers.append(record)

        logger.debug("Transfer executed", extra_data=record.to_dict())
        return record

    @abstractmethod
    def _apply(self, amount: int, sender: str, recipient: str) -> None:
        """Applica il trasferimento o solleva TransferFailedError"""

    @property
    def transfers(self) -> List[Transfer]:
        """Storico trasferimenti (copia)"""
        with self._lock:
            return list(self._transfers)

    def balance_of(self, account: str) -> Optional[int]:
        """Saldo account, None se il ledger non traccia saldi"""
        return None


# ============================================================================
# RECORDING LEDGER
# ============================================================================

class RecordingLedger(ValueLedger):
    """
    Ledger che registra i trasferimenti senza tracciare saldi.

    Usato dalla CLI e dai test: il trasferimento reale e' esterno al
    registry.
    """

    def __init__(self, fail_for: Optional[set] = None):
        super().__init__()
        # Account mittenti per cui simulare un fallimento
        self.fail_for = set(fail_for or ())

    def _apply(self, amount: int, sender: str, recipient: str) -> None:
        if sender in self.fail_for:
            raise TransferFailedError(
                f"Transfer from {sender} rejected",
                code="TRANSFER_REJECTED",
                details={"amount": amount, "from": sender, "to": recipient}
            )


# ============================================================================
# BALANCE LEDGER
# ============================================================================

class BalanceLedger(ValueLedger):
    """
    Ledger con saldi per account.

    Example:
        >>> ledger = BalanceLedger({"alice": 1000})
        >>> _ = ledger.transfer(400, "alice", "registry")
        >>> ledger.balance_of("alice")
        600
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        super().__init__()
        self._balances: Dict[str, int] = dict(balances or {})

    def mint(self, account: str, amount: int) -> None:
        """Accredita fondi fuori dal circuito transfer (setup)"""
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount

    def _apply(self, amount: int, sender: str, recipient: str) -> None:
        available = self._balances.get(sender, 0)
        if available < amount:
            raise TransferFailedError(
                f"Insufficient balance for {sender}: {available} < {amount}",
                code="INSUFFICIENT_BALANCE",
                details={"account": sender, "balance": available, "amount": amount}
            )
        self._balances[sender] = available - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._balances)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "Transfer",
    "ValueLedger",
    "RecordingLedger",
    "BalanceLedger",
]
