"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"

sys.path.insert(0, str(src_path))

import pytest
from prometheus_client import CollectorRegistry

from nftledger.core.config import LedgerSettings
from nftledger.core.contracts import PSP34Ledger
from nftledger.core.metrics import LedgerMetrics
from nftledger.core.types import AccountId


ALICE = AccountId("0x" + "aa" * 20)
BOB = AccountId("0x" + "bb" * 20)
CAROL = AccountId("0x" + "cc" * 20)


@pytest.fixture
def alice():
    return ALICE


@pytest.fixture
def bob():
    return BOB


@pytest.fixture
def carol():
    return CAROL


@pytest.fixture
def settings():
    """Settings independent of NFTLEDGER_* variables in the environment"""
    return LedgerSettings(max_supply=0, balance_bits=32, metrics_enabled=False)


@pytest.fixture
def ledger(settings):
    """Create a clean ledger for testing"""
    return PSP34Ledger(collection_id=1, settings=settings)


@pytest.fixture
def metrics():
    """Metrics bound to a private registry"""
    return LedgerMetrics(registry=CollectorRegistry())
