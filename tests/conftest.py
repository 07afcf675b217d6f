"""
tests/conftest.py -- Shared fixtures.

The app is built with create_app() and a FakeSupabase handed in through
SupabaseClients, so the lifespan never constructs a real client and every
route runs its real dependency chain against in-memory tables.

RATE_LIMIT_ENABLED must be set before anything under app/ is imported:
the shared limiter reads settings at import time.
"""

from __future__ import annotations

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.database.supabase_client import SupabaseClients
from app.main import create_app
from fakes import AGORA_APP_CERTIFICATE, AGORA_APP_ID, FakeSupabase


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="https://project.supabase.co",
        supabase_key="anon-key",
        supabase_service_role_key="service-role-key",
        agora_app_id=AGORA_APP_ID,
        agora_app_certificate=AGORA_APP_CERTIFICATE,
        environment="test",
        rate_limit_enabled=False,
    )


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def clients(fake_db: FakeSupabase) -> SupabaseClients:
    return SupabaseClients(db=fake_db, auth_factory=lambda: fake_db)


@pytest.fixture
def client(test_settings: Settings, clients: SupabaseClients) -> Generator[TestClient, None, None]:
    app = create_app(test_settings, clients=clients)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def guest(fake_db: FakeSupabase) -> tuple[str, str]:
    return fake_db.add_user("guest@example.com", "guest", display_name="Gwen Guest")


@pytest.fixture
def practitioner(fake_db: FakeSupabase) -> tuple[str, str]:
    return fake_db.add_user(
        "pract@example.com", "practitioner", display_name="Pat Practitioner", online=True
    )
