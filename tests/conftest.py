"""Shared fixtures: isolated settings and stores under tmp_path."""

from unittest.mock import MagicMock

import pytest

from hpc_club.config import Settings
from hpc_club.identity.service import IdentityService
from hpc_club.storage.kv import KeyValueStore
from hpc_club.storage.tables import TableStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        jwt_secret="test-secret-key-with-enough-length-for-hs256",
        openai_api_key="",
        stripe_secret_key="sk_test_123",
        stripe_price_pro="price_pro",
        stripe_webhook_secret="whsec_test",
        google_client_id="google-client",
        google_client_secret="google-secret",
    )


@pytest.fixture
def store(settings):
    return TableStore(settings.tables_dir)


@pytest.fixture
def kv(settings):
    return KeyValueStore(settings.kv_dir)


@pytest.fixture
def identity(store, settings):
    return IdentityService(store, settings)


def completion(text):
    """Fake chat-completions response carrying ``text``."""
    response = MagicMock()
    choice = MagicMock()
    choice.message.content = text
    response.choices = [choice]
    return response
