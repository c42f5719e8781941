"""
FundRegistry - Logging System
===============================
Sistema logging strutturato JSON per audit e debugging.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Logging JSON strutturato
- Rotation automatica
- Context enrichment (extra_data)
- Performance tracking
- Audit trail eventi registry
"""

import logging
import logging.handlers
import json
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import traceback


ROOT_LOGGER_NAME = "fundregistry"


def _utc(created: float) -> datetime:
    return datetime.fromtimestamp(created, tz=timezone.utc)


# ============================================================================
# JSON FORMATTER
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formatter per log in formato JSON.

    Output structure:
    {
        "timestamp": "2026-10-18T10:00:00.000000Z",
        "level": "INFO",
        "logger": "fundregistry.registry",
        "message": "Campaign created",
        "extra_data": {...},
        "exception": {...}
    }
    """

    def __init__(
        self,
        include_extra: bool = True,
        include_stack: bool = True
    ):
        super().__init__()
        self.include_extra = include_extra
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": _utc(record.created).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.include_extra and hasattr(record, 'extra_data'):
            log_data["extra_data"] = record.extra_data

        if record.exc_info and self.include_stack:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, default=str)


# ============================================================================
# TEXT FORMATTER (Human-Readable)
# ============================================================================

class ColoredTextFormatter(logging.Formatter):
    """
    Formatter colorato per console.

    Colors:
    - DEBUG: Gray
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red
    """

    COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[1;91m',
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        timestamp = _utc(record.created).strftime('%Y-%m-%d %H:%M:%S')

        message = f"{timestamp} [{levelname}] {record.name}: {record.getMessage()}"

        if getattr(record, 'extra_data', None):
            message += f" | {record.extra_data}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


# ============================================================================
# LOGGER CLASS
# ============================================================================

class RegistryLogger:
    """
    Wrapper logger con context enrichment.

    Example:
        >>> logger = get_logger("registry")
        >>> logger.set_context(db="./data/fundregistry.db")
        >>> logger.info("Campaign created", extra_data={"campaign_id": 1})
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs):
        """Imposta context aggiunto a tutti i log"""
        self._context.update(kwargs)

    def clear_context(self):
        """Clear context"""
        self._context.clear()

    def _log(
        self,
        level: int,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None,
        exc_info=None
    ):
        merged_extra = {**self._context}
        if extra_data:
            merged_extra.update(extra_data)

        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={'extra_data': merged_extra} if merged_extra else {}
        )

    def debug(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.DEBUG, message, extra_data)

    def info(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.INFO, message, extra_data)

    def warning(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.WARNING, message, extra_data)

    def error(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        self._log(logging.ERROR, message, extra_data, exc_info)


# ============================================================================
# SETUP FUNCTION
# ============================================================================

def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 100,
    log_retention_days: int = 30,
    enable_console: bool = True,
) -> RegistryLogger:
    """
    Setup logging system completo.

    Args:
        log_level: Level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Salva su file
        log_dir: Directory log files
        log_format: Formato file (json, text)
        log_rotation_mb: MB prima rotation
        log_retention_days: File di backup mantenuti
        enable_console: Log anche su console (stderr)

    Returns:
        RegistryLogger: Logger root configurato
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "fundregistry.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )

        if log_format == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(ColoredTextFormatter(use_colors=False))

        root_logger.addHandler(file_handler)

        # Log errori separato
        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "fundregistry_errors.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter(include_stack=True))
        root_logger.addHandler(error_handler)

    if enable_console:
        # stderr: stdout e' riservato all'output CLI
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredTextFormatter(use_colors=sys.stderr.isatty()))
        root_logger.addHandler(console_handler)

    if not root_logger.handlers:
        # Niente fallback su stderr (lastResort) quando console e file sono spenti
        root_logger.addHandler(logging.NullHandler())

    return RegistryLogger(root_logger)


def setup_logging_from_settings(config, enable_console: bool = True) -> RegistryLogger:
    """Setup logging da RegistrySettings"""
    return setup_logging(
        log_level=config.log_level,
        log_to_file=config.log_to_file,
        log_dir=config.log_dir,
        log_format=config.log_format,
        log_rotation_mb=config.log_rotation_mb,
        log_retention_days=config.log_retention_days,
        enable_console=enable_console,
    )


# ============================================================================
# CATEGORY LOGGERS
# ============================================================================

def get_logger(category: str) -> RegistryLogger:
    """
    Ottieni logger per categoria specifica.

    Args:
        category: Categoria (registry, ledger, storage, cli, ...)

    Example:
        >>> storage_logger = get_logger("storage")
        >>> storage_logger.info("Snapshot saved")
    """
    return RegistryLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Context manager per tracking performance.

    Example:
        >>> logger = get_logger("storage")
        >>> with PerformanceLogger(logger, "save_snapshot"):
        ...     db.save_snapshot(snapshot)
    """

    def __init__(
        self,
        logger: RegistryLogger,
        operation: str,
        threshold_ms: Optional[int] = None
    ):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        extra = {
            "operation": self.operation,
            "duration_ms": round(elapsed_ms, 2)
        }

        if self.threshold_ms and elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation} took {elapsed_ms:.2f}ms (threshold: {self.threshold_ms}ms)",
                extra_data=extra
            )
        else:
            self.logger.debug(
                f"{self.operation} completed in {elapsed_ms:.2f}ms",
                extra_data=extra
            )


# ============================================================================
# AUDIT LOGGER
# ============================================================================

class AuditLogger:
    """
    Logger specializzato per audit trail.

    Registra ogni evento del journal registry (creazioni, contributi,
    prelievi, cambi configurazione) su audit.log, senza rotation.
    """

    def __init__(self, log_dir: Path = Path("./logs")):
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.audit_file = log_dir / "audit.log"

        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit")
        self.logger.setLevel(logging.INFO)

        # Evita handler duplicati sullo stesso file
        for handler in self.logger.handlers:
            if getattr(handler, "baseFilename", None) == str(self.audit_file.resolve()):
                break
        else:
            handler = logging.FileHandler(self.audit_file, encoding='utf-8')
            handler.setFormatter(JSONFormatter(include_extra=True))
            self.logger.addHandler(handler)

    def log_event(self, event) -> None:
        """Log RegistryEvent"""
        self.logger.info(
            f"Registry event: {event.event_type.value}",
            extra={'extra_data': {"action": event.event_type.value, **event.to_dict()}}
        )

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            if getattr(handler, "baseFilename", None) == str(self.audit_file.resolve()):
                handler.close()
                self.logger.removeHandler(handler)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "setup_logging",
    "setup_logging_from_settings",
    "get_logger",
    "RegistryLogger",
    "PerformanceLogger",
    "AuditLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
]
