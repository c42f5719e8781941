"""
FundRegistry - Version Management
===================================
Versioning semantico e build info.

Last Updated: 2026-10-18
Version: 1.0.0
"""

import platform
from typing import NamedTuple


# ============================================================================
# VERSION INFO
# ============================================================================

class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""


VERSION = VersionInfo(
    major=1,
    minor=0,
    patch=0,
    prerelease="",
    build=""
)

# Versione schema snapshot (vedi storage.db.SCHEMA_VERSION)
SNAPSHOT_FORMAT_VERSION = 1


def get_version_string() -> str:
    """
    Get version as string.

    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"

    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"

    if VERSION.build:
        version_str += f"+{VERSION.build}"

    return version_str


def get_version_tuple() -> tuple:
    """Get version as tuple"""
    return (VERSION.major, VERSION.minor, VERSION.patch)


def get_build_info() -> dict:
    """Build metadata mostrati da `fundregistry version`"""
    return {
        "version": get_version_string(),
        "version_tuple": get_version_tuple(),
        "snapshot_format": SNAPSHOT_FORMAT_VERSION,
        "python": platform.python_version(),
        "platform": platform.system().lower() or "unknown",
    }


# ============================================================================
# EXPORT
# ============================================================================

__version__ = get_version_string()
__version_info__ = VERSION

__all__ = [
    "__version__",
    "__version_info__",
    "VERSION",
    "SNAPSHOT_FORMAT_VERSION",
    "get_version_string",
    "get_version_tuple",
    "get_build_info",
]
