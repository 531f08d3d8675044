import random
import sqlite3

import pytest
from telegram.ext import ConversationHandler

from config import BATCH_SIZE, PASSWORD_LENGTH, PLACEHOLDER, SETTINGS
from handlers import Handlers, build_settings_keyboard, command_argument
from password_generator import PasswordGenerator, PasswordGeneratorSettings, SpecialCharacterUsage

from conftest import USER_ID, make_callback_update, make_message_update


@pytest.fixture
def handlers(db):
    return Handlers(db, rng=random.Random(0))


def sent_text(update) -> str:
    return update.message.reply_text.await_args.args[0]


def edited_text(update) -> str:
    return update.callback_query.edit_message_text.await_args.args[0]


@pytest.mark.asyncio
async def test_generate_sends_batch_and_stores_history(handlers, db, context):
    update = make_message_update('/generate')
    await handlers.generate_command(update, context)

    history = db.get_history(USER_ID)
    assert len(history) == BATCH_SIZE
    assert all(len(password) == 8 for password in history)

    text = sent_text(update)
    for password in history:
        assert f"<code>{password}</code>" in text
    assert PLACEHOLDER not in text


@pytest.mark.asyncio
async def test_generate_with_empty_charset_shows_placeholder(handlers, db, context):
    db.save_generator(USER_ID, PasswordGenerator(PasswordGeneratorSettings(
        use_lowercase_letters=False, use_uppercase_letters=False, use_numbers=False,
    )))
    update = make_message_update('/generate')
    await handlers.generate_command(update, context)

    assert db.get_history(USER_ID) == [PLACEHOLDER] * BATCH_SIZE
    assert '/charset' in sent_text(update)


@pytest.mark.asyncio
async def test_history_command(handlers, db, context):
    update = make_message_update('/history')
    await handlers.history_command(update, context)
    assert '/generate' in sent_text(update)

    db.save_history(USER_ID, ['a<b'])
    update = make_message_update('/history')
    await handlers.history_command(update, context)
    assert '<code>a&lt;b</code>' in sent_text(update)


@pytest.mark.asyncio
async def test_charset_command_sets_and_clears(handlers, db, context):
    await handlers.charset_command(make_message_update('/charset ab cd'), context)
    assert db.get_generator(USER_ID).custom_charset == 'ab cd'

    await handlers.charset_command(make_message_update('/charset'), context)
    assert db.get_generator(USER_ID).custom_charset is None


@pytest.mark.asyncio
async def test_settings_command_shows_values(handlers, db, context):
    generator = PasswordGenerator(PasswordGeneratorSettings(length=17))
    generator.set_custom_charset('xy')
    db.save_generator(USER_ID, generator)

    update = make_message_update('/settings')
    await handlers.settings_command(update, context)
    text = sent_text(update)
    assert '17' in text
    assert '<code>xy</code>' in text


@pytest.mark.asyncio
async def test_settings_dialog_toggle_and_save(handlers, db, context):
    state = await handlers.start_settings(make_message_update('/settings_dialog'), context)
    assert state == SETTINGS

    for action in ('lowercase', 'special', 'special', 'custom'):
        state = await handlers.handle_settings(make_callback_update(action), context)
        assert state == SETTINGS

    # nothing is stored until save
    assert db.get_generator(USER_ID).settings == PasswordGeneratorSettings()

    update = make_callback_update('save')
    state = await handlers.handle_settings(update, context)
    assert state == ConversationHandler.END
    assert 'generator' not in context.user_data

    settings = db.get_generator(USER_ID).settings
    assert settings.use_lowercase_letters is False
    assert settings.use_custom_charset is True
    assert settings.special_character_usage is SpecialCharacterUsage.ALL


@pytest.mark.asyncio
async def test_settings_dialog_cancel_discards(handlers, db, context):
    await handlers.start_settings(make_message_update('/settings_dialog'), context)
    await handlers.handle_settings(make_callback_update('numbers'), context)

    state = await handlers.handle_settings(make_callback_update('cancel'), context)
    assert state == ConversationHandler.END
    assert db.get_generator(USER_ID).settings.use_numbers is True


@pytest.mark.asyncio
async def test_length_input(handlers, db, context):
    await handlers.start_settings(make_message_update('/settings_dialog'), context)

    update = make_callback_update('length')
    assert await handlers.handle_settings(update, context) == PASSWORD_LENGTH
    assert '48' in edited_text(update)

    for text in ('abc', '0', '49'):
        update = make_message_update(text)
        assert await handlers.handle_password_length(update, context) == PASSWORD_LENGTH

    update = make_message_update('48')
    assert await handlers.handle_password_length(update, context) == SETTINGS

    await handlers.handle_settings(make_callback_update('save'), context)
    assert db.get_generator(USER_ID).settings.length == 48


def test_settings_keyboard():
    keyboard = build_settings_keyboard(PasswordGeneratorSettings(
        special_character_usage=SpecialCharacterUsage.SIMPLE, length=12,
    ))
    buttons = [button for row in keyboard.inline_keyboard for button in row]
    callbacks = [button.callback_data for button in buttons]

    assert callbacks == ['length', 'lowercase', 'uppercase', 'numbers', 'custom', 'special', 'save', 'cancel']
    assert '12' in buttons[0].text
    assert 'простые' in buttons[5].text


@pytest.mark.asyncio
async def test_cancel_clears_session(handlers, context):
    context.user_data['generator'] = PasswordGenerator()
    update = make_message_update('/cancel')
    assert await handlers.cancel(update, context) == ConversationHandler.END
    assert context.user_data == {}


@pytest.mark.asyncio
async def test_charset_set_during_dialog_survives_save(handlers, db, context):
    await handlers.start_settings(make_message_update('/settings_dialog'), context)
    await handlers.charset_command(make_message_update('/charset xyz'), context)
    await handlers.handle_settings(make_callback_update('numbers'), context)
    await handlers.handle_settings(make_callback_update('save'), context)

    generator = db.get_generator(USER_ID)
    assert generator.custom_charset == 'xyz'
    assert generator.settings.use_numbers is False


@pytest.mark.asyncio
async def test_charset_after_newline(handlers, db, context):
    await handlers.charset_command(make_message_update('/charset\nab c'), context)
    assert db.get_generator(USER_ID).custom_charset == 'ab c'


@pytest.mark.parametrize('text, expected', [
    ('/charset', ''),
    ('/charset ab', 'ab'),
    ('/charset  ab', ' ab'),
    ('/charset\tab\ncd', 'ab\ncd'),
    ('/charset@SomeBot x y', 'x y'),
    ('', ''),
])
def test_command_argument(text, expected):
    assert command_argument(text) == expected


@pytest.mark.asyncio
async def test_history_clear(handlers, db, context):
    db.save_history(USER_ID, ['one', 'two'])
    update = make_message_update('/history clear')
    await handlers.history_command(update, context)

    assert db.get_history(USER_ID) == []
    assert 'очищена' in sent_text(update)


@pytest.mark.asyncio
@pytest.mark.parametrize('command, method', [
    ('history_command', 'get_history'),
    ('settings_command', 'get_generator'),
    ('charset_command', 'save_generator'),
])
async def test_storage_errors_are_reported(handlers, db, context, monkeypatch, command, method):
    def broken(*args, **kwargs):
        raise sqlite3.OperationalError('database is locked')

    monkeypatch.setattr(db, method, broken)
    update = make_message_update(f'/{command} xy')
    await getattr(handlers, command)(update, context)
    assert sent_text(update).startswith('❌')
