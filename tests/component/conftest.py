"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── marketing/   Service, API, repository and client tests
    └── mocks/       Mock implementations

Usage:
    pytest tests/component -v
    pytest tests/component/marketing -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("JWT_SECRET", "test-marketing-secret")

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import MockAsyncPostgresClient


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Shared Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_db():
    """Mock Data Store client recording every query"""
    return MockAsyncPostgresClient()
