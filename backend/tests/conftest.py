"""
Pytest configuration and shared fixtures for the Mintscan tests.
"""

import os
import sys

# Keep test runs from creating a logs/ directory
os.environ.setdefault("LOG_DIR", "")

# Add the backend directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

import pytest

from factories import FakeBlockFetcher, random_address


@pytest.fixture
def mint_address() -> str:
    return random_address()


@pytest.fixture
def fetcher() -> FakeBlockFetcher:
    return FakeBlockFetcher(height=105)


@pytest.fixture
def mints_file(tmp_path):
    return tmp_path / "mints.json"


@pytest.fixture
def cursor_file(tmp_path):
    return tmp_path / "cursor.json"
