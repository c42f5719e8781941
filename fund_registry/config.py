"""
FundRegistry - Configuration Management
=========================================
Gestione centralizzata configurazione con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso FUNDREGISTRY_
- File .env support
- Profile multipli (dev/prod)
"""

import os
from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fund_registry.constants import (
    DEFAULT_REGISTRY_ADMIN,
    DEFAULT_CREATION_FEE,
    DEFAULT_MAX_CAMPAIGNS,
    DEFAULT_CUSTODY_ACCOUNT,
    MAX_NAME_LENGTH,
    MAX_DESCRIPTION_LENGTH,
)


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class RegistrySettings(BaseSettings):
    """
    Configurazione principale FundRegistry.

    Supporta:
    - Caricamento da environment variables (FUNDREGISTRY_*)
    - Caricamento da file .env
    - Override programmatici
    - Validazione automatica

    Example:
        # Da environment
        export FUNDREGISTRY_REGISTRY_ADMIN="ST1ADMIN"
        export FUNDREGISTRY_CREATION_FEE=2000

        # Da codice
        config = RegistrySettings(creation_fee=0)
    """

    model_config = SettingsConfigDict(
        env_prefix='FUNDREGISTRY_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # REGISTRY GENESIS
    # ========================================================================

    registry_admin: str = Field(
        default=DEFAULT_REGISTRY_ADMIN,
        min_length=1,
        description="Amministratore iniziale del registry"
    )

    creation_fee: int = Field(
        default=DEFAULT_CREATION_FEE,
        ge=0,
        description="Fee flat per creazione campagna"
    )

    max_campaigns: int = Field(
        default=DEFAULT_MAX_CAMPAIGNS,
        ge=1,
        description="Tetto id campagne (esclusivo)"
    )

    custody_account: str = Field(
        default=DEFAULT_CUSTODY_ACCOUNT,
        min_length=1,
        description="Account ledger che custodisce i fondi contribuiti"
    )

    # ========================================================================
    # VALIDATION LIMITS
    # ========================================================================

    max_name_length: int = Field(
        default=MAX_NAME_LENGTH,
        ge=1,
        description="Lunghezza massima nome campagna"
    )

    max_description_length: int = Field(
        default=MAX_DESCRIPTION_LENGTH,
        ge=0,
        description="Lunghezza massima descrizione campagna"
    )

    # ========================================================================
    # STORAGE
    # ========================================================================

    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory dati registry"
    )

    db_path: Optional[Path] = Field(
        default=None,
        description="Path database (auto: data_dir/fundregistry.db)"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_to_file: bool = Field(
        default=False,
        description="Salva log su file"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_format: str = Field(
        default="json",
        description="Formato log: json, text"
    )

    log_rotation_mb: int = Field(
        default=100,
        ge=1,
        description="Dimensione max file log prima rotation (MB)"
    )

    log_retention_days: int = Field(
        default=30,
        ge=1,
        description="Giorni retention log files"
    )

    enable_audit_log: bool = Field(
        default=False,
        description="Scrivi eventi registry su audit.log"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower

    # ========================================================================
    # POST-INIT PROCESSING
    # ========================================================================

    def model_post_init(self, __context) -> None:
        """Post-initialization: setup paths"""
        if self.db_path is None:
            self.db_path = self.data_dir / "fundregistry.db"

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def ensure_directories(self) -> None:
        """Crea directories dati/log se non esistono"""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.db_path is not None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.log_to_file or self.enable_audit_log:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict:
        """Serializza config"""
        return self.model_dump()

    def to_json(self) -> str:
        """Serializza config in JSON"""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "RegistrySettings":
        """Carica config da JSON"""
        return cls.model_validate_json(json_str)

    def __repr__(self) -> str:
        return (
            f"RegistrySettings("
            f"registry_admin={self.registry_admin}, "
            f"creation_fee={self.creation_fee}, "
            f"max_campaigns={self.max_campaigns}, "
            f"db_path={self.db_path})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> RegistrySettings:
    """
    Ottieni singleton instance di RegistrySettings.

    Returns:
        RegistrySettings: Instance configurazione

    Example:
        >>> config = get_settings()
        >>> config.creation_fee
        1000
    """
    return RegistrySettings()


def reload_settings() -> RegistrySettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables runtime.
    """
    get_settings.cache_clear()
    return get_settings()


# ============================================================================
# PROFILE PRESETS
# ============================================================================

def get_development_config() -> RegistrySettings:
    """
    Config preset per development.

    Features:
    - Log DEBUG in formato testo
    - Nessuna fee di creazione
    """
    return RegistrySettings(
        creation_fee=0,
        log_level="DEBUG",
        log_format="text",
    )


def get_production_config() -> RegistrySettings:
    """
    Config preset per production.

    Features:
    - Log WARNING su file
    - Audit log abilitato
    """
    return RegistrySettings(
        log_level="WARNING",
        log_to_file=True,
        enable_audit_log=True,
    )


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(config: RegistrySettings) -> tuple[bool, list[str]]:
    """
    Valida configurazione completa.

    Args:
        config: RegistrySettings da validare

    Returns:
        tuple: (is_valid, errors_list)
    """
    errors = []

    if config.registry_admin == config.custody_account:
        errors.append("registry_admin and custody_account cannot be the same")

    if config.max_campaigns < 2:
        errors.append("max_campaigns < 2 leaves no room for any campaign")

    # Directory scrivibili (se esistono)
    for dir_path in [config.data_dir, config.log_dir]:
        if dir_path.exists() and not os.access(dir_path, os.W_OK):
            errors.append(f"Directory not writable: {dir_path}")

    return (len(errors) == 0, errors)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "RegistrySettings",
    "get_settings",
    "reload_settings",
    "get_development_config",
    "get_production_config",
    "validate_config",
]
