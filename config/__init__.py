"""
Модуль конфигурации хранилища образовательной платформы.
"""

from .settings import get_settings, load_settings_from_file, Settings

__version__ = "1.0.0"

__all__ = ['get_settings', 'load_settings_from_file', 'Settings']
