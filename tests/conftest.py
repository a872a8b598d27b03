"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

from typing import Dict
from unittest.mock import MagicMock

import pytest
from eth_utils import keccak

from builders import GasWorld, hash_chain, make_header
from gasproof_toolkit.ledger.block_history import BlockHistoryLedger, InMemoryChain
from gasproof_toolkit.shared.retry import RetryConfig
from gasproof_toolkit.shared.services.web3_service import Web3Service


@pytest.fixture
def block_hashes() -> Dict[int, bytes]:
    """Hashes for blocks [0, 2000)."""
    return hash_chain(2000)


@pytest.fixture
def chain(block_hashes) -> InMemoryChain:
    """Chain view starting at height 1000."""
    return InMemoryChain(block_hashes, height=1000)


@pytest.fixture
def ledger(chain) -> BlockHistoryLedger:
    return BlockHistoryLedger(chain)


@pytest.fixture
def world() -> GasWorld:
    return GasWorld()


@pytest.fixture
def world_ledger(world) -> BlockHistoryLedger:
    """Ledger with a single entry committing to the world's blocks [0, 120)."""
    ledger = BlockHistoryLedger(world.chain)
    world.commit_history(ledger)
    return ledger


@pytest.fixture
def sample_header() -> bytes:
    """Header with gasLimit 8,000,000 and gasUsed 7,500,000."""
    return make_header(42, gas_limit=8_000_000, gas_used=7_500_000)


@pytest.fixture
def mock_web3_service():
    """Web3Service with a mocked web3 instance and no retry delays."""
    service = Web3Service(
        1,
        "http://localhost:8545",
        retry_config=RetryConfig(max_attempts=3, base_delay=0.0),
    )
    service.w3 = MagicMock()
    service.w3.eth.block_number = 21000000
    service.w3.eth.get_block.side_effect = lambda number: {
        "number": number,
        "hash": keccak(text=f"block-{number}"),
        "timestamp": 1764806400,
    }
    return service


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")
