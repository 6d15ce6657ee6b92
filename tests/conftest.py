"""
Pytest configuration and shared fixtures for airdrop proof tests.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from airdrop.main import create_application
from airdrop.services.eligibility_service import EligibilityService
from airdrop.services.tree_registry import TreeRegistry

from helpers import ADDRESS_A, ADDRESS_B, ADDRESS_C, DEFAULT_AMOUNT


@pytest.fixture
def addresses() -> list[str]:
    """Three-address eligibility list."""
    return [ADDRESS_A, ADDRESS_B, ADDRESS_C]


@pytest.fixture
def registry() -> TreeRegistry:
    """Create an empty tree registry."""
    return TreeRegistry()


@pytest.fixture
def service(registry: TreeRegistry) -> EligibilityService:
    """Create an eligibility service backed by a fresh registry."""
    return EligibilityService(
        registry=registry,
        default_tree_id="default",
        default_amount=DEFAULT_AMOUNT,
        max_addresses=1000,
    )


@pytest.fixture
def client(service: EligibilityService) -> Generator[TestClient, None, None]:
    """Create a test client for an app wired to the test service."""
    app = create_application(service)
    with TestClient(app) as test_client:
        yield test_client
