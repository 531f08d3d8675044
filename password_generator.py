import secrets
import string
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Dict, List, Optional

LETTERS_LOWER = string.ascii_lowercase
LETTERS_UPPER = string.ascii_uppercase
NUMBERS = string.digits
SIMPLE_SPECIAL_CHARS = '.!?_-'
ALL_SPECIAL_CHARS = '.!?_-#,;:+*~=&'


class EmptyOrMissingCharsetError(ValueError):
    """Набор символов пуст или не задан"""


class SpecialCharacterUsage(Enum):
    """Какие специальные символы добавлять к набору"""
    NONE = 'None'
    SIMPLE = 'Simple'
    ALL = 'All'

    @classmethod
    def parse(cls, value) -> 'SpecialCharacterUsage':
        """Приведение сохраненного значения к перечислению"""
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value).lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown special character usage: {value!r}")

    @property
    def chars(self) -> str:
        return {
            SpecialCharacterUsage.NONE: '',
            SpecialCharacterUsage.SIMPLE: SIMPLE_SPECIAL_CHARS,
            SpecialCharacterUsage.ALL: ALL_SPECIAL_CHARS,
        }[self]

    def next(self) -> 'SpecialCharacterUsage':
        """Следующий вариант по кругу: None -> Simple -> All -> None"""
        members = list(SpecialCharacterUsage)
        return members[(members.index(self) + 1) % len(members)]


@dataclass
class PasswordGeneratorSettings:
    """Настройки генерации паролей"""
    use_custom_charset: bool = False
    use_lowercase_letters: bool = True
    use_uppercase_letters: bool = True
    use_numbers: bool = True
    special_character_usage: SpecialCharacterUsage = SpecialCharacterUsage.NONE
    length: int = 8

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['special_character_usage'] = self.special_character_usage.value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'PasswordGeneratorSettings':
        """Восстановление настроек; отсутствующие поля берутся по умолчанию, лишние игнорируются"""
        data = data or {}
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}

        if 'special_character_usage' in values:
            values['special_character_usage'] = SpecialCharacterUsage.parse(values['special_character_usage'])
        if 'length' in values:
            length = values['length']
            if isinstance(length, bool) or not isinstance(length, int) or length < 0:
                raise ValueError(f"Invalid password length: {length!r}")
        for key in ('use_custom_charset', 'use_lowercase_letters', 'use_uppercase_letters', 'use_numbers'):
            if key in values and not isinstance(values[key], bool):
                raise ValueError(f"Field {key} must be a bool, got {values[key]!r}")

        return cls(**values)


def build_charset(settings: PasswordGeneratorSettings) -> str:
    """Сборка стандартного набора символов по настройкам"""
    chars = ''
    if settings.use_lowercase_letters:
        chars += LETTERS_LOWER
    if settings.use_uppercase_letters:
        chars += LETTERS_UPPER
    if settings.use_numbers:
        chars += NUMBERS
    return chars + settings.special_character_usage.chars


class PasswordGenerator:
    """Генератор паролей"""

    def __init__(self, settings: Optional[PasswordGeneratorSettings] = None, rng=None):
        self.settings = settings if settings is not None else PasswordGeneratorSettings()
        self.custom_charset: Optional[str] = None
        self.charset: Optional[str] = None
        # Любой объект с методом choice(): secrets.SystemRandom, random.Random(seed)
        self.rng = rng if rng is not None else secrets.SystemRandom()

    @classmethod
    def from_settings(cls, settings: PasswordGeneratorSettings, rng=None) -> 'PasswordGenerator':
        return cls(settings, rng=rng)

    @classmethod
    def from_dict(cls, data: Optional[Dict], rng=None) -> 'PasswordGenerator':
        """Восстановление генератора из сохраненной записи"""
        data = data or {}
        custom_charset = data.get('custom_charset')
        if custom_charset is not None and not isinstance(custom_charset, str):
            raise ValueError(f"Custom charset must be a string, got {custom_charset!r}")

        generator = cls(PasswordGeneratorSettings.from_dict(data.get('settings')), rng=rng)
        generator.set_custom_charset(custom_charset)
        return generator

    def to_dict(self) -> Dict:
        return {
            'settings': self.settings.to_dict(),
            'custom_charset': self.custom_charset,
        }

    def set_custom_charset(self, custom_charset: Optional[str]):
        """Замена пользовательского набора символов (None сбрасывает его)"""
        self.custom_charset = custom_charset

    def update_charset(self) -> int:
        """Пересчет стандартного набора; возвращает количество символов"""
        self.charset = build_charset(self.settings)
        return len(self.charset)

    def generate(self) -> str:
        """Генерация одного пароля"""
        self.update_charset()

        if self.settings.use_custom_charset:
            if self.custom_charset is None:
                raise EmptyOrMissingCharsetError("Пользовательский набор символов не задан")
            charset = self.custom_charset
        else:
            charset = self.charset

        if not charset:
            raise EmptyOrMissingCharsetError("Набор символов для генерации пароля пуст")

        password = ''
        for _ in range(self.settings.length):
            # Новый символ добавляется в начало строки
            password = self.rng.choice(charset) + password

        return password

    def generate_batch(self, count: int, placeholder: Optional[str] = None) -> List[str]:
        """Генерация нескольких паролей; при ошибке подставляется placeholder, если он задан"""
        passwords = []
        for _ in range(count):
            try:
                passwords.append(self.generate())
            except EmptyOrMissingCharsetError:
                if placeholder is None:
                    raise
                passwords.append(placeholder)
        return passwords
