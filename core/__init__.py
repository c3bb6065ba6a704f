"""
Основной модуль хранилища образовательной платформы.
"""

from .service import PlatformService, get_platform_service
from .models import Course, Lesson, Certificate, User, CoursePayload, LessonPayload, UserPayload
from .store import EntityStore, UnitOfWork, create_store
from .generator import IdentityAllocator
from .repository import Repository
from .storage import MemoryBackend, StorageBackend
from .exceptions import (
    EntityKind, PlatformError, NotFoundError, NotCreatorError, InputValidationError,
    PartialFailureError, AllocatorExhaustedError, StorageError
)

__version__ = "1.0.0"

__all__ = [
    'PlatformService',
    'get_platform_service',
    'Course',
    'Lesson',
    'Certificate',
    'User',
    'CoursePayload',
    'LessonPayload',
    'UserPayload',
    'EntityStore',
    'UnitOfWork',
    'create_store',
    'IdentityAllocator',
    'Repository',
    'MemoryBackend',
    'StorageBackend',
    'EntityKind',
    'PlatformError',
    'NotFoundError',
    'NotCreatorError',
    'InputValidationError',
    'PartialFailureError',
    'AllocatorExhaustedError',
    'StorageError'
]
