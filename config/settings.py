"""
Настройки приложения, загружаемые из переменных окружения.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STORAGE_BACKENDS = ("database", "memory")


class Settings(BaseSettings):
    """Настройки приложения."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Игнорировать дополнительные поля из .env
    )

    # Настройки хранилища
    database_url: str = Field(
        default="sqlite:///./data/platform.db",
        description="URL подключения к базе данных"
    )
    storage_backend: str = Field(default="database", description="Среда хранения: database или memory")

    # Идентификатор вызывающего по умолчанию для CLI
    caller_principal: str = Field(default="anonymous", description="Идентификатор вызывающего")

    # Настройки логирования
    log_level: str = Field(default="INFO", description="Уровень логирования")
    log_file: Path = Field(default=Path("./logs/platform.log"), description="Путь к файлу логов")

    # Настройки приложения
    debug: bool = Field(default=False, description="Режим отладки (вывод SQL запросов)")

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Валидация среды хранения."""
        v = v.strip().lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"Неизвестная среда хранения: {v}. Допустимо: {', '.join(STORAGE_BACKENDS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Валидация уровня логирования."""
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Некорректный уровень логирования: {v}")
        return v

    @field_validator("caller_principal")
    @classmethod
    def validate_caller_principal(cls, v: str) -> str:
        """Идентификатор вызывающего не может быть пустым."""
        if not v.strip():
            raise ValueError("Идентификатор вызывающего не может быть пустым")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Возвращает объект настроек."""
    return Settings()


def load_settings_from_file(env_file: str = ".env") -> Settings:
    """
    Загружает настройки из указанного файла.

    Args:
        env_file: Путь к файлу с переменными окружения

    Returns:
        Settings: Объект настроек
    """
    return Settings(_env_file=env_file)
