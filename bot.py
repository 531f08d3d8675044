import logging
from telegram.ext import Application

from config import LOG_CONFIG, DB_PATH
from database import DatabaseManager
from handlers import Handlers

# Настройка логирования
logging.basicConfig(**LOG_CONFIG)
logger = logging.getLogger(__name__)

class PasswordGeneratorBot:
    """Основной класс бота для генерации паролей"""

    def __init__(self, token: str, db_path: str = DB_PATH):
        self.token = token
        self.application = Application.builder().token(token).build()
        self.db = DatabaseManager(db_path)

        # Инициализация обработчиков
        self.handlers = Handlers(self.db)
        self.setup_handlers()

    def setup_handlers(self):
        """Настройка обработчиков команд"""
        for handler in self.handlers.get_handlers():
            self.application.add_handler(handler)

    def run(self):
        """Запуск бота"""
        logger.info("Starting Password Generator Bot...")
        self.application.run_polling()
