"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

from src.client.models import Principal, Session
from tests.helpers import FakeClient


@pytest.fixture
def temp_data_dir():
    """Create a temporary directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def session():
    return Session(
        node="vrops-01.lab.local",
        principal=Principal("admin", "local"),
        token="tok-123",
        issued_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        trust_all=True,
    )


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def sample_alerts():
    return [
        {"id": "A1", "name": "Host CPU contention"},
        {"id": "A2", "name": "Datastore running out of space"},
        {"id": "A3", "name": "VM memory ballooning"},
    ]


@pytest.fixture
def sample_policies():
    return {
        "policy-summaries": [
            {"id": "p-base", "name": "Base Settings"},
            {"id": "p-a", "name": "PolicyA"},
            {"id": "p-b", "name": "PolicyB"},
        ]
    }
