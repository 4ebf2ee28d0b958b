"""Test configuration for pytest."""

import logging
import os

import pytest

from gpps_core.engine import NodeEngine
from gpps_core.ids import scope_id
from gpps_core.store import ScopeStore
from gpps_ledger.ram import RamLedger
from gpps_verify.crypto import public_key

ALICE_SEED = bytes(range(32))
BOB_SEED = bytes(range(32, 64))


@pytest.fixture(autouse=True, scope="session")
def configure_test_logging():
    """Keep library loggers quiet during tests."""
    os.environ['GPPS_LOG_LEVEL'] = 'WARNING'
    for logger_name in ['gpps_core.engine', 'gpps_verify.logic', 'gpps_ledger.cli']:
        logging.getLogger(logger_name).setLevel(logging.ERROR)


@pytest.fixture
def ledger():
    return RamLedger()


@pytest.fixture
def store(ledger):
    return ScopeStore(observers=[ledger])


@pytest.fixture
def engine(store):
    return NodeEngine(store)


@pytest.fixture
def alice():
    return scope_id(public_key(ALICE_SEED))


@pytest.fixture
def bob():
    return scope_id(public_key(BOB_SEED))
