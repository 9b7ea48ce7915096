"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
import sys
from pathlib import Path

# Add the package source to Python path for testing
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from katalon_assist.core.models import Locator, LocatorKind


@pytest.fixture(scope="session")
def package_src_path():
    """Provide the package source path for tests."""
    return src_path


@pytest.fixture
def katalon_project(tmp_path):
    """Create a minimal Katalon project with one test suite."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / ".project").write_text("<projectDescription/>")
    suites_dir = project_dir / "Test Suites"
    suites_dir.mkdir()
    (suites_dir / "Smoke.ts").write_text("<TestSuiteEntity/>")
    (suites_dir / "Nightly.tsc").write_text("<TestSuiteCollectionEntity/>")
    return project_dir


@pytest.fixture
def broken_locator():
    """XPath locator for a login button whose id is still intact."""
    return Locator(LocatorKind.XPATH, "//button[@id='submit-btn']")


@pytest.fixture
def sample_run_id():
    """Generate a unique run ID."""
    import uuid
    return f"execution_1700000000000_{uuid.uuid4().hex[:9]}"


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    import logging
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
