import os

os.environ.setdefault("DB_URL", "sqlite:///./lynqai-test.db")
os.environ.setdefault("API_KEY", "test-api-key")

import pytest
from unittest.mock import MagicMock

from lynqai.db.conversation_store import ConversationStore
from lynqai.utils.auth import AuthenticatedUser


@pytest.fixture
def store(tmp_path):
    conversation_store = ConversationStore.for_url(f"sqlite:///{tmp_path / 'conversations.db'}")
    conversation_store.init_schema()
    return conversation_store


@pytest.fixture
def user():
    return AuthenticatedUser(uid="user-1", email="user@example.com")


@pytest.fixture
def other_user():
    return AuthenticatedUser(uid="user-2", email="other@example.com")


@pytest.fixture
def generation_client():
    return MagicMock()
