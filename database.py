import json
import sqlite3
import logging
from typing import List

from password_generator import PasswordGenerator, PasswordGeneratorSettings

logger = logging.getLogger(__name__)

class DatabaseManager:
    """Менеджер базы данных"""

    def __init__(self, db_path: str = 'password_generator.db'):
        self.db_path = db_path
        self.init_database()

    def init_database(self):
        """Инициализация базы данных"""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS generator_state (
                    user_id INTEGER PRIMARY KEY,
                    state TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS generated_passwords (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    password TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

    def get_generator(self, user_id: int, rng=None) -> PasswordGenerator:
        """Получение генератора пользователя"""
        with sqlite3.connect(self.db_path) as conn:
            result = conn.execute(
                'SELECT state FROM generator_state WHERE user_id = ?',
                (user_id,)
            ).fetchone()

        if not result:
            return PasswordGenerator(rng=rng)

        try:
            return PasswordGenerator.from_dict(json.loads(result[0]), rng=rng)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Corrupted generator state for user {user_id}, using defaults: {e}")
            return PasswordGenerator(rng=rng)

    def save_generator(self, user_id: int, generator: PasswordGenerator):
        """Сохранение настроек и пользовательского набора символов"""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute('''
                INSERT OR REPLACE INTO generator_state (user_id, state, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            ''', (user_id, json.dumps(generator.to_dict())))

    def save_settings(self, user_id: int, settings: PasswordGeneratorSettings):
        """Сохранение только настроек; пользовательский набор символов остается прежним"""
        generator = self.get_generator(user_id)
        generator.settings = settings
        self.save_generator(user_id, generator)

    def save_history(self, user_id: int, passwords: List[str]):
        """Замена последней пачки сгенерированных паролей"""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute('DELETE FROM generated_passwords WHERE user_id = ?', (user_id,))
            conn.executemany(
                'INSERT INTO generated_passwords (user_id, password) VALUES (?, ?)',
                [(user_id, password) for password in passwords]
            )

    def get_history(self, user_id: int) -> List[str]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                'SELECT password FROM generated_passwords WHERE user_id = ? ORDER BY id',
                (user_id,)
            ).fetchall()
        return [row[0] for row in rows]

    def clear_history(self, user_id: int):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute('DELETE FROM generated_passwords WHERE user_id = ?', (user_id,))
