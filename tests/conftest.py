from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from database import DatabaseManager

USER_ID = 42


@pytest.fixture
def db(tmp_path):
    return DatabaseManager(str(tmp_path / 'test.db'))


@pytest.fixture
def context():
    return SimpleNamespace(user_data={}, args=[])


def make_message_update(text: str = '', user_id: int = USER_ID):
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.text = text
    update.message.reply_text = AsyncMock()
    return update


def make_callback_update(data: str, user_id: int = USER_ID):
    update = MagicMock()
    update.effective_user.id = user_id
    update.callback_query.data = data
    update.callback_query.from_user.id = user_id
    update.callback_query.answer = AsyncMock()
    update.callback_query.edit_message_text = AsyncMock()
    return update
