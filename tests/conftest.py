"""Test configuration."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import List

import pytest
from pytest import Config

# Settings read TESTING at construction, so it must be set before app imports
os.environ.setdefault("TESTING", "true")

from kolours.core.logging import configure_logging  # noqa: E402

# Load .env.test file for tests when present
try:
    from dotenv import load_dotenv

    env_test_file = Path(__file__).parent.parent / ".env.test"
    if env_test_file.exists():
        load_dotenv(env_test_file, override=True)
except ImportError:
    # dotenv not available, skip loading
    pass

pytest_plugins: List[str] = [
    "tests.fixtures.api",
    "tests.fixtures.image_cid",
]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session", autouse=True)
def testing_environment() -> Generator[None, None, None]:
    """Mark the process as running tests for the whole session."""
    os.environ["TESTING"] = "true"
    yield


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    configure_logging(testing=True)
    config.addinivalue_line(
        "markers", "concurrent: mark test as exercising multi-threaded callers"
    )
