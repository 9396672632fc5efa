"""Shared fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.chat import Chat
from app.models.mentor import Mentor
from app.models.user import User
from tests.factories import make_chat, make_mentor, make_user


@pytest.fixture
def db() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def user() -> User:
    return make_user()


@pytest.fixture
def mentor() -> Mentor:
    return make_mentor()


@pytest.fixture
def chat(user: User, mentor: Mentor) -> Chat:
    return make_chat(user, mentor)
