"""
FundRegistry - Pytest Configuration
=====================================
Fixtures e configurazione per testing.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

# Internal imports
from fund_registry.config import RegistrySettings
from fund_registry.domain.ledger import RecordingLedger
from fund_registry.domain.registry import FundRegistry
from fund_registry.storage.db import RegistryDatabase


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def temp_data_dir():
    """Temporary data directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_config(temp_data_dir):
    """Test configuration (valori del deploy di riferimento)"""
    return RegistrySettings(
        _env_file=None,
        registry_admin="ST1TEST",
        creation_fee=1000,
        max_campaigns=1000,
        custody_account="contract",
        data_dir=temp_data_dir,
        log_dir=temp_data_dir / "logs",
        log_to_file=False,
    )


# ============================================================================
# REGISTRY FIXTURES
# ============================================================================

@pytest.fixture
def ledger():
    """Ledger che registra i trasferimenti"""
    return RecordingLedger(fail_for={"ST9BROKE"})


@pytest.fixture
def registry(test_config, ledger):
    """Registry vuoto"""
    return FundRegistry(config=test_config, ledger=ledger)


@pytest.fixture
def campaign_id(registry):
    """Campagna "Health Fund" creata da ST1TEST a height 100 (deadline 200)"""
    return registry.create_campaign(
        "ST1TEST", 100, "Health Fund", "Virtual clinic funding", 10000, 100
    )


@pytest.fixture
def ended_campaign_id(registry, campaign_id):
    """Campagna con 500 raccolti e terminata"""
    registry.contribute("ST1TEST", 100, campaign_id, 500)
    registry.end_campaign("ST1TEST", 110, campaign_id)
    return campaign_id


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture
def test_database(temp_data_dir):
    """Test database"""
    db = RegistryDatabase(temp_data_dir / "test.db")
    yield db
    db.close()
