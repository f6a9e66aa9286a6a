"""
Root conftest.py - Global configuration for all test layers.

Test Layers:
    - component/  : Service, API, repository and client tests (mocked Data Store)
    - unit/       : Engine tests (pure functions, no I/O)
"""
import os
import sys

# Set testing environment BEFORE any imports that load settings
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("JWT_SECRET", "test-marketing-secret")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    __test__ = False

    SERVICE_NAME = "marketing_service"
    SERVICE_PORT = 8260
    BASE_URL = f"http://localhost:{SERVICE_PORT}"

    ADMIN_USERNAME = "admin"
    ADMIN_PASSWORD = "admin123"
    STAFF_USERNAME = "staff"
    STAFF_PASSWORD = "staff123"
