import os

# Токен бота берется только из переменных окружения
BOT_TOKEN = os.getenv('BOT_TOKEN')

# Константы для ConversationHandler
SETTINGS, PASSWORD_LENGTH = range(2)

# Параметры генерации
MIN_PASSWORD_LENGTH = 1
MAX_PASSWORD_LENGTH = 48
BATCH_SIZE = 5
PLACEHOLDER = 'error occurred'

# Настройки логирования
LOG_CONFIG = {
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'level': os.getenv('LOG_LEVEL', 'INFO')
}

# Настройки базы данных
DB_PATH = os.getenv('DB_PATH', 'password_generator.db')
