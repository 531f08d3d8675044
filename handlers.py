import re
import html
import sqlite3
import logging
from typing import List

from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes, ConversationHandler, CommandHandler, MessageHandler, CallbackQueryHandler, filters

from config import (
    SETTINGS, PASSWORD_LENGTH, MIN_PASSWORD_LENGTH, MAX_PASSWORD_LENGTH, BATCH_SIZE, PLACEHOLDER
)
from password_generator import PasswordGenerator, PasswordGeneratorSettings, SpecialCharacterUsage

logger = logging.getLogger(__name__)

SPECIAL_LABELS = {
    SpecialCharacterUsage.NONE: 'нет',
    SpecialCharacterUsage.SIMPLE: 'простые',
    SpecialCharacterUsage.ALL: 'все',
}

TOGGLES = {
    'lowercase': ('🔡 Строчные', 'use_lowercase_letters'),
    'uppercase': ('🔠 Заглавные', 'use_uppercase_letters'),
    'numbers': ('🔢 Цифры', 'use_numbers'),
    'custom': ('✏️ Свой набор', 'use_custom_charset'),
}


def mark(enabled: bool) -> str:
    return '✅' if enabled else '❌'


def build_settings_keyboard(settings: PasswordGeneratorSettings) -> InlineKeyboardMarkup:
    """Клавиатура меню настроек"""
    keyboard = [
        [InlineKeyboardButton(f"📏 Длина пароля: {settings.length}", callback_data='length')]
    ]

    row = []
    for key, (label, field) in TOGGLES.items():
        row.append(InlineKeyboardButton(f"{label}: {mark(getattr(settings, field))}", callback_data=key))
        if len(row) == 2:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)

    special = SPECIAL_LABELS[settings.special_character_usage]
    keyboard.extend([
        [InlineKeyboardButton(f"🔣 Спецсимволы: {special}", callback_data='special')],
        [
            InlineKeyboardButton("💾 Сохранить", callback_data='save'),
            InlineKeyboardButton("❌ Отмена", callback_data='cancel')
        ]
    ])
    return InlineKeyboardMarkup(keyboard)


def format_settings(generator: PasswordGenerator) -> str:
    settings = generator.settings
    if generator.custom_charset is None:
        custom = 'не задан'
    else:
        custom = f"<code>{html.escape(generator.custom_charset)}</code>"

    return (
        "⚙️ <b>Текущие настройки генерации паролей:</b>\n\n"
        f"• 📏 Длина пароля: {settings.length} символов\n"
        f"• 🔡 Строчные буквы: {mark(settings.use_lowercase_letters)}\n"
        f"• 🔠 Заглавные буквы: {mark(settings.use_uppercase_letters)}\n"
        f"• 🔢 Цифры: {mark(settings.use_numbers)}\n"
        f"• 🔣 Специальные символы: {SPECIAL_LABELS[settings.special_character_usage]}\n"
        f"• ✏️ Свой набор символов: {mark(settings.use_custom_charset)} ({custom})\n"
    )


def command_argument(text: str) -> str:
    """Весь текст после команды, начиная со следующего за первым пробельным символом"""
    # Пробелы внутри аргумента сохраняются
    match = re.match(r'\S*\s(.*)', text or '', re.DOTALL)
    return match.group(1) if match else ''


def format_passwords(passwords: List[str]) -> str:
    return '\n'.join(f"<code>{html.escape(password)}</code>" for password in passwords)


class Handlers:
    """Класс с обработчиками команд бота"""

    def __init__(self, db, rng=None):
        self.db = db
        self.rng = rng

    def get_handlers(self):
        """Возвращает список обработчиков команд"""
        return [
            CommandHandler("start", self.start),
            CommandHandler("help", self.help_command),
            CommandHandler("generate", self.generate_command),
            CommandHandler("history", self.history_command),
            CommandHandler("settings", self.settings_command),
            CommandHandler("charset", self.charset_command),
            self.get_settings_conversation_handler(),
            CallbackQueryHandler(self.handle_button_click),
            MessageHandler(filters.COMMAND, self.unknown_command)
        ]

    def get_settings_conversation_handler(self):
        """Conversation Handler для настроек"""
        return ConversationHandler(
            entry_points=[CommandHandler('settings_dialog', self.start_settings)],
            states={
                SETTINGS: [
                    CallbackQueryHandler(self.handle_settings,
                                         pattern='^(length|lowercase|uppercase|numbers|custom|special|save|cancel)$')
                ],
                PASSWORD_LENGTH: [
                    MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_password_length)
                ]
            },
            fallbacks=[CommandHandler('cancel', self.cancel)]
        )

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обработчик команды /start"""
        user_id = update.effective_user.id
        logger.info(f"User {user_id} called /start")

        welcome_text = """
🤖 Добро пожаловать в Password Generator Bot!

Этот бот поможет вам:
• 🔐 Генерировать случайные пароли
• ⚙️ Настраивать набор символов и длину
• ✏️ Использовать собственный набор символов

Нажмите /generate, чтобы получить первые пароли.
        """
        await update.message.reply_text(welcome_text)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обработчик команды /help"""
        help_text = f"""
📖 <b>Доступные команды:</b>

🔑 <b>Генерация:</b>
/generate - Сгенерировать {BATCH_SIZE} паролей
/history - Показать последние пароли
/history clear - Очистить историю

⚙️ <b>Настройки:</b>
/settings - Показать текущие настройки
/settings_dialog - Изменить настройки генерации
/charset символы - Задать свой набор символов
/charset - Сбросить свой набор символов
        """
        await update.message.reply_text(help_text, parse_mode='HTML')

    async def unknown_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обработчик неизвестных команд"""
        await update.message.reply_text(
            "❌ Неизвестная команда. Используйте /help для просмотра доступных команд."
        )

    async def generate_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Генерация пачки паролей"""
        user_id = update.effective_user.id

        try:
            generator = self.db.get_generator(user_id, rng=self.rng)
            passwords = generator.generate_batch(BATCH_SIZE, placeholder=PLACEHOLDER)
            self.db.save_history(user_id, passwords)
        except sqlite3.Error as e:
            logger.error(f"Error generating passwords for user {user_id}: {e}")
            await update.message.reply_text("❌ Ошибка при генерации паролей.")
            return

        logger.debug(f"Generated with length {generator.settings.length} for user {user_id}")

        text = f"🔐 <b>Сгенерированные пароли:</b>\n\n{format_passwords(passwords)}"
        if PLACEHOLDER in passwords:
            text += "\n\n⚠️ Набор символов пуст или не задан. Проверьте /settings и /charset"
        await update.message.reply_text(text, parse_mode='HTML')

    async def history_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Показать последнюю пачку паролей; /history clear очищает ее"""
        user_id = update.effective_user.id
        clear = command_argument(update.message.text).strip().lower() == 'clear'

        try:
            if clear:
                self.db.clear_history(user_id)
            else:
                passwords = self.db.get_history(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error reading history for user {user_id}: {e}")
            await update.message.reply_text("❌ Ошибка при чтении истории.")
            return

        if clear:
            await update.message.reply_text("🗑️ История паролей очищена.")
            return

        if not passwords:
            await update.message.reply_text("📭 Вы еще не генерировали пароли. Используйте /generate")
            return

        await update.message.reply_text(
            f"📋 <b>Последние пароли:</b>\n\n{format_passwords(passwords)}",
            parse_mode='HTML'
        )

    async def settings_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Показать текущие настройки"""
        user_id = update.effective_user.id
        try:
            generator = self.db.get_generator(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error loading settings for user {user_id}: {e}")
            await update.message.reply_text("❌ Ошибка при загрузке настроек.")
            return

        text = format_settings(generator) + "\n💡 Используйте /settings_dialog для изменения настроек"
        await update.message.reply_text(text, parse_mode='HTML')

    async def charset_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Установка или сброс пользовательского набора символов"""
        user_id = update.effective_user.id
        custom_charset = command_argument(update.message.text) or None

        try:
            generator = self.db.get_generator(user_id)
            generator.set_custom_charset(custom_charset)
            self.db.save_generator(user_id, generator)
        except sqlite3.Error as e:
            logger.error(f"Error saving custom charset for user {user_id}: {e}")
            await update.message.reply_text("❌ Ошибка при сохранении набора символов.")
            return

        if custom_charset is None:
            await update.message.reply_text("✅ Свой набор символов сброшен.")
        else:
            await update.message.reply_text(
                f"✅ Свой набор символов: <code>{html.escape(custom_charset)}</code>\n\n"
                f"💡 Включите «Свой набор» в /settings_dialog, чтобы использовать его",
                parse_mode='HTML'
            )

    async def start_settings(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Начало настройки параметров генерации"""
        user_id = update.effective_user.id
        generator = self.db.get_generator(user_id)
        context.user_data['generator'] = generator

        await update.message.reply_text(
            self.settings_menu_text(), parse_mode='HTML',
            reply_markup=build_settings_keyboard(generator.settings)
        )
        return SETTINGS

    @staticmethod
    def settings_menu_text() -> str:
        return "⚙️ <b>Настройки генерации паролей</b>\n\nВыберите параметр для изменения:"

    async def handle_settings(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Обработка настроек"""
        query = update.callback_query
        await query.answer()
        user_id = query.from_user.id
        action = query.data

        generator = context.user_data.get('generator')
        if generator is None:
            generator = self.db.get_generator(user_id)
            context.user_data['generator'] = generator
        settings = generator.settings

        if action == 'length':
            await query.edit_message_text(
                f"📏 Введите длину пароля (от {MIN_PASSWORD_LENGTH} до {MAX_PASSWORD_LENGTH} символов):"
            )
            return PASSWORD_LENGTH
        elif action in TOGGLES:
            field = TOGGLES[action][1]
            setattr(settings, field, not getattr(settings, field))
        elif action == 'special':
            settings.special_character_usage = settings.special_character_usage.next()
        elif action == 'save':
            context.user_data.pop('generator', None)
            try:
                self.db.save_settings(user_id, settings)
            except sqlite3.Error as e:
                logger.error(f"Error saving settings for user {user_id}: {e}")
                await query.edit_message_text("❌ Ошибка при сохранении настроек.")
                return ConversationHandler.END
            await query.edit_message_text("✅ Настройки успешно сохранены!")
            return ConversationHandler.END
        elif action == 'cancel':
            context.user_data.pop('generator', None)
            await query.edit_message_text("❌ Настройки отменены.")
            return ConversationHandler.END

        await query.edit_message_text(
            self.settings_menu_text(), parse_mode='HTML',
            reply_markup=build_settings_keyboard(settings)
        )
        return SETTINGS

    async def handle_password_length(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Обработка ввода длины пароля"""
        user_id = update.effective_user.id
        bounds = f"от {MIN_PASSWORD_LENGTH} до {MAX_PASSWORD_LENGTH}"
        try:
            length = int(update.message.text)
        except ValueError:
            await update.message.reply_text(f"❌ Пожалуйста, введите число {bounds}.")
            return PASSWORD_LENGTH

        if not MIN_PASSWORD_LENGTH <= length <= MAX_PASSWORD_LENGTH:
            await update.message.reply_text(f"❌ Длина пароля должна быть {bounds} символов.")
            return PASSWORD_LENGTH

        generator = context.user_data.get('generator')
        if generator is None:
            generator = self.db.get_generator(user_id)
            context.user_data['generator'] = generator
        generator.settings.length = length

        await update.message.reply_text(
            self.settings_menu_text(), parse_mode='HTML',
            reply_markup=build_settings_keyboard(generator.settings)
        )
        return SETTINGS

    async def handle_button_click(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обработка нажатий на inline кнопки"""
        await update.callback_query.answer()

    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Отмена текущей операции"""
        context.user_data.pop('generator', None)
        await update.message.reply_text("❌ Операция отменена.")
        return ConversationHandler.END
