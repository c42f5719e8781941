"""
FundRegistry - Custom Exceptions
==================================
Gerarchia di eccezioni per gestione errori granulare.

Last Updated: 2026-10-18
Version: 1.0.0

Ogni precondizione fallita del registry solleva una sottoclasse di
RegistryError con un codice numerico stabile (error_code).
"""

from typing import Optional, Any

from fund_registry.constants import ErrorCode


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class FundRegistryException(Exception):
    """
    Eccezione base per tutte le eccezioni FundRegistry.

    Attributes:
        message (str): Messaggio errore
        code (str): Codice errore (es. "UNAUTHORIZED")
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per CLI/logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(FundRegistryException):
    """Errore configurazione sistema"""
    pass


class InvalidConfigError(ConfigError):
    """Configurazione invalida"""
    pass


# ============================================================================
# REGISTRY ERRORS
# ============================================================================

class RegistryError(FundRegistryException):
    """
    Errore registry (base).

    Sottoclassi fissano `error_code`; il codice stringa di default e' il
    nome dell'ErrorCode (es. "PAUSED").
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            message or self.__doc__.strip(),
            code=self.error_code.name,
            details=details
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["error_code"] = int(self.error_code)
        return data


class PausedError(RegistryError):
    """Registry in pausa"""
    error_code = ErrorCode.PAUSED


class UnauthorizedError(RegistryError):
    """Caller senza ruolo richiesto"""
    error_code = ErrorCode.UNAUTHORIZED


class CampaignNotFoundError(RegistryError):
    """Campagna non trovata"""
    error_code = ErrorCode.NOT_FOUND


class ValidationError(RegistryError):
    """Errore validazione input (base)"""
    error_code = ErrorCode.UNKNOWN


class InvalidAmountError(ValidationError):
    """Amount invalido"""
    error_code = ErrorCode.INVALID_AMOUNT


class InvalidGoalError(ValidationError):
    """Goal invalido"""
    error_code = ErrorCode.INVALID_GOAL


class InvalidDurationError(ValidationError):
    """Durata invalida"""
    error_code = ErrorCode.INVALID_DURATION


class InvalidNameError(ValidationError):
    """Nome campagna invalido"""
    error_code = ErrorCode.INVALID_NAME


class InvalidDescriptionError(ValidationError):
    """Descrizione campagna invalida"""
    error_code = ErrorCode.INVALID_DESCRIPTION


class CapacityExceededError(RegistryError):
    """Numero massimo campagne raggiunto"""
    error_code = ErrorCode.CAPACITY_EXCEEDED


class LifecycleError(RegistryError):
    """Stato campagna incompatibile con l'operazione (base)"""
    error_code = ErrorCode.UNKNOWN


class CampaignEndedError(LifecycleError):
    """Campagna terminata"""
    error_code = ErrorCode.CAMPAIGN_ENDED


class AlreadyEndedError(LifecycleError):
    """Campagna gia' terminata"""
    error_code = ErrorCode.ALREADY_ENDED


class CampaignStillActiveError(LifecycleError):
    """Campagna ancora attiva"""
    error_code = ErrorCode.CAMPAIGN_STILL_ACTIVE


class DeadlinePassedError(LifecycleError):
    """Deadline campagna superata"""
    error_code = ErrorCode.DEADLINE_PASSED


class FundsLockedError(LifecycleError):
    """Fondi campagna bloccati"""
    error_code = ErrorCode.FUNDS_LOCKED


class InsufficientFundsError(RegistryError):
    """Fondi raccolti insufficienti"""
    error_code = ErrorCode.INSUFFICIENT_FUNDS


# ============================================================================
# LEDGER ERRORS
# ============================================================================

class LedgerError(FundRegistryException):
    """Errore ledger esterno"""
    pass


class TransferFailedError(LedgerError):
    """Trasferimento valore fallito"""
    pass


# ============================================================================
# STORAGE ERRORS
# ============================================================================

class StorageError(FundRegistryException):
    """Errore storage/database"""
    pass


class DatabaseError(StorageError):
    """Errore database generico"""
    pass


class SnapshotError(StorageError):
    """Snapshot registry corrotto o incompleto"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def error_for_code(code: int) -> type:
    """
    Risolvi classe errore da codice numerico.

    Args:
        code: Codice numerico (es. 100)

    Returns:
        type: Sottoclasse RegistryError, RegistryError se sconosciuto

    Example:
        >>> error_for_code(100) is PausedError
        True
    """
    for cls in _REGISTRY_ERRORS:
        if int(cls.error_code) == code:
            return cls
    return RegistryError


def format_validation_error(
    error_cls: type,
    field: str,
    value: Any,
    expected: str
) -> RegistryError:
    """
    Helper per creare errori di validazione formattati.

    Example:
        >>> raise format_validation_error(InvalidGoalError, "goal", 0, "positive integer")
    """
    return error_cls(
        f"Invalid field '{field}': expected {expected}, got {value!r}",
        details={"field": field, "value": value, "expected": expected}
    )


_REGISTRY_ERRORS = (
    PausedError,
    UnauthorizedError,
    CampaignNotFoundError,
    InvalidAmountError,
    InvalidGoalError,
    InvalidDurationError,
    InvalidNameError,
    InvalidDescriptionError,
    CampaignEndedError,
    DeadlinePassedError,
    CapacityExceededError,
    FundsLockedError,
    AlreadyEndedError,
    CampaignStillActiveError,
    InsufficientFundsError,
)


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "FundRegistryException",

    # Config
    "ConfigError",
    "InvalidConfigError",

    # Registry
    "RegistryError",
    "PausedError",
    "UnauthorizedError",
    "CampaignNotFoundError",
    "ValidationError",
    "InvalidAmountError",
    "InvalidGoalError",
    "InvalidDurationError",
    "InvalidNameError",
    "InvalidDescriptionError",
    "CapacityExceededError",
    "LifecycleError",
    "CampaignEndedError",
    "AlreadyEndedError",
    "CampaignStillActiveError",
    "DeadlinePassedError",
    "FundsLockedError",
    "InsufficientFundsError",

    # Ledger
    "LedgerError",
    "TransferFailedError",

    # Storage
    "StorageError",
    "DatabaseError",
    "SnapshotError",

    # Helpers
    "error_for_code",
    "format_validation_error",
]
