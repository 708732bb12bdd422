"""Pytest configuration and fixtures for rotating-secrets tests"""

import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"

if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rotating_secrets import api  # noqa: E402
from rotating_secrets.credentials import SecretSourceReader  # noqa: E402


class RecordingAdapter:
    """Adapter that records every update it receives."""

    def __init__(self, name: str = "recorder", calls: list = None, fail_with: Exception = None):
        self.name = name
        self.updates = []
        self.calls = calls if calls is not None else []
        self.fail_with = fail_with

    def update(self, username: str, password: str) -> None:
        self.calls.append(self.name)
        self.updates.append((username, password))
        if self.fail_with is not None:
            raise self.fail_with


def write_secrets(directory: Path, **values: str) -> None:
    """Write secret files; keyword names use underscores for dashes (jdbc_url)."""
    for name, value in values.items():
        (directory / name.replace("_", "-")).write_text(value, encoding="utf-8")


@pytest.fixture
def secrets_dir(tmp_path):
    """Secrets directory pre-populated with svc/p1."""
    directory = tmp_path / "secrets"
    directory.mkdir()
    write_secrets(directory, username="svc\n", password="p1\n")
    return directory


@pytest.fixture
def reader(secrets_dir):
    return SecretSourceReader(secrets_dir)


@pytest.fixture(autouse=True)
def reset_api_coordinator():
    """Keep the router's installed coordinator from leaking between tests."""
    yield
    api.set_coordinator(None)


@pytest.fixture
def make_adapter():
    """Factory for RecordingAdapter instances sharing one call log."""
    calls = []

    def factory(name: str = "recorder", fail_with: Exception = None) -> RecordingAdapter:
        return RecordingAdapter(name=name, calls=calls, fail_with=fail_with)

    factory.calls = calls
    return factory


@pytest.fixture
def write():
    """Expose write_secrets to tests."""
    return write_secrets
