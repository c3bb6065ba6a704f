"""
Модели SQLAlchemy и реализация упорядоченного хранилища поверх базы данных.
"""

import logging
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Tuple

from sqlalchemy import Column, Integer, LargeBinary, create_engine, func, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import get_settings
from .exceptions import StorageError
from .storage import Cell, OrderedMap, StorageBackend, decode_key, encode_key

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


class MapEntry(Base):
    """Модель записи упорядоченного отображения."""

    __tablename__ = "map_entries"

    table_id = Column(Integer, primary_key=True)
    key = Column(LargeBinary(8), primary_key=True)  # u64 в big-endian
    value = Column(LargeBinary, nullable=False)

    def __repr__(self):
        return f"<MapEntry(table_id={self.table_id}, key={decode_key(self.key)})>"


class CellEntry(Base):
    """Модель скалярной ячейки."""

    __tablename__ = "cells"

    table_id = Column(Integer, primary_key=True)
    value = Column(LargeBinary(8), nullable=False)

    def __repr__(self):
        return f"<CellEntry(table_id={self.table_id}, value={decode_key(self.value)})>"


class DatabaseManager:
    """Менеджер для работы с базой данных."""

    def __init__(self, database_url: str = None, echo: bool = None):
        """
        Инициализация менеджера БД.

        Args:
            database_url: URL подключения к БД
            echo: Выводить SQL запросы в лог
        """
        if database_url is None:
            database_url = get_settings().database_url
        if echo is None:
            echo = get_settings().debug

        url = make_url(database_url)
        engine_options = {"echo": echo, "pool_pre_ping": True}

        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                # Одно соединение на весь процесс, иначе у каждой сессии своя БД
                engine_options["poolclass"] = StaticPool
                engine_options["connect_args"] = {"check_same_thread": False}
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_options["pool_recycle"] = 3600

        self.engine = create_engine(database_url, **engine_options)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Создает все таблицы в базе данных."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Таблицы базы данных созданы успешно")

    def drop_tables(self):
        """Удаляет все таблицы из базы данных."""
        Base.metadata.drop_all(bind=self.engine)
        logger.info("Таблицы базы данных удалены")

    def get_session(self) -> Session:
        """Возвращает новую сессию для работы с БД."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self, operation: str) -> Iterator[Session]:
        """
        Открывает сессию и переводит ошибки SQLAlchemy в StorageError.

        Args:
            operation: Название операции для сообщения об ошибке
        """
        with self.get_session() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Ошибка БД при выполнении '{operation}': {e}")
                raise StorageError(f"Ошибка БД при выполнении '{operation}': {e}") from e

    def health_check(self) -> bool:
        """Проверяет подключение к базе данных."""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(f"Ошибка подключения к БД: {e}")
            return False

    def dispose(self):
        """Закрывает все соединения пула."""
        self.engine.dispose()


class SqlOrderedMap(OrderedMap):
    """Упорядоченное отображение, хранимое в таблице map_entries."""

    def __init__(self, db_manager: DatabaseManager, table_id: int):
        self.db_manager = db_manager
        self.table_id = table_id

    def get(self, key: bytes) -> Optional[bytes]:
        with self.db_manager.session_scope("get") as session:
            entry = session.get(MapEntry, (self.table_id, key))
            return entry.value if entry is not None else None

    def insert(self, key: bytes, value: bytes) -> Optional[bytes]:
        with self.db_manager.session_scope("insert") as session:
            entry = session.get(MapEntry, (self.table_id, key))
            if entry is None:
                previous = None
                session.add(MapEntry(table_id=self.table_id, key=key, value=value))
            else:
                previous = entry.value
                entry.value = value
            session.commit()
            return previous

    def remove(self, key: bytes) -> Optional[bytes]:
        with self.db_manager.session_scope("remove") as session:
            entry = session.get(MapEntry, (self.table_id, key))
            if entry is None:
                return None
            previous = entry.value
            session.delete(entry)
            session.commit()
            return previous

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        with self.db_manager.session_scope("items") as session:
            rows = session.query(MapEntry.key, MapEntry.value).filter(
                MapEntry.table_id == self.table_id
            ).order_by(MapEntry.key).all()
        for row in rows:
            yield row.key, row.value

    def __len__(self) -> int:
        with self.db_manager.session_scope("count") as session:
            return session.query(func.count(MapEntry.key)).filter(
                MapEntry.table_id == self.table_id
            ).scalar()


class SqlCell(Cell):
    """Скалярная ячейка, хранимая в таблице cells."""

    def __init__(self, db_manager: DatabaseManager, table_id: int, default: int = 0):
        self.db_manager = db_manager
        self.table_id = table_id

        with self.db_manager.session_scope("init cell") as session:
            if session.get(CellEntry, self.table_id) is None:
                session.add(CellEntry(table_id=self.table_id, value=encode_key(default)))
                session.commit()

    def get(self) -> int:
        with self.db_manager.session_scope("get cell") as session:
            entry = session.get(CellEntry, self.table_id)
            return decode_key(entry.value)

    def set(self, value: int) -> int:
        with self.db_manager.session_scope("set cell") as session:
            entry = session.get(CellEntry, self.table_id)
            previous = decode_key(entry.value)
            entry.value = encode_key(value)
            session.commit()
            return previous


class DatabaseBackend(StorageBackend):
    """Среда хранения поверх SQLAlchemy; каждая запись фиксируется сразу."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.db_manager.create_tables()

    def open_map(self, table_id: int) -> OrderedMap:
        return SqlOrderedMap(self.db_manager, table_id)

    def open_cell(self, table_id: int, default: int = 0) -> Cell:
        return SqlCell(self.db_manager, table_id, default)

    def close(self) -> None:
        self.db_manager.dispose()


@lru_cache
def get_db_manager() -> DatabaseManager:
    """Возвращает менеджер БД, настроенный из переменных окружения."""
    return DatabaseManager()
