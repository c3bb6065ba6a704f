"""
CLI интерфейс для хранилища образовательной платформы
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from config.settings import Settings, get_settings
from core.exceptions import PlatformError
from core.models import CoursePayload, LessonPayload
from core.service import PlatformService
from core.store import create_store


class PlatformCLI:
    """CLI интерфейс для работы с курсами, уроками, сертификатами и пользователями"""

    def __init__(self, settings: Optional[Settings] = None, service: Optional[PlatformService] = None):
        self.settings = settings or get_settings()
        self.setup_logging()
        self.service = service or PlatformService(create_store(self.settings))

    def setup_logging(self):
        """Настройка логирования"""
        self.settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=getattr(logging, self.settings.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(self.settings.log_file, encoding='utf-8'),
                logging.StreamHandler()
            ]
        )
        self.logger = logging.getLogger(__name__)

    def print_json(self, data):
        """Вывод результата в формате JSON"""
        if hasattr(data, 'model_dump'):
            data = data.model_dump(mode='json')
        elif isinstance(data, list):
            data = [item.model_dump(mode='json') for item in data]
        print(json.dumps(data, ensure_ascii=False, indent=2))

    # Служебные команды

    def init_db(self, args):
        """Создание таблиц БД"""
        db_manager = getattr(self.service.store.backend, 'db_manager', None)
        if db_manager is None:
            print("Хранилище в памяти не требует инициализации")
            return
        db_manager.create_tables()
        print("✓ Таблицы базы данных созданы")

    def health(self, args):
        """Проверка доступности хранилища"""
        db_manager = getattr(self.service.store.backend, 'db_manager', None)
        healthy = db_manager.health_check() if db_manager is not None else True
        if not healthy:
            print("✗ База данных недоступна")
            raise SystemExit(1)
        print("✓ Хранилище доступно")

    def stats(self, args):
        """Статистика хранилища"""
        self.print_json(self.service.get_statistics())

    # Курсы

    def course_add(self, args):
        course = self.service.add_course(
            args.caller, CoursePayload(title=args.title, description=args.description)
        )
        print(f"✓ Курс создан: {course.id}")
        self.print_json(course)

    def course_get(self, args):
        self.print_json(self.service.get_course(args.id))

    def course_update(self, args):
        course = self.service.update_course(
            args.caller, args.id, CoursePayload(title=args.title, description=args.description)
        )
        self.print_json(course)

    def course_delete(self, args):
        self.service.delete_course(args.caller, args.id)
        print(f"✓ Курс {args.id} удален")

    def course_lessons(self, args):
        self.print_json(self.service.list_course_lessons(args.id))

    # Уроки

    def lesson_add(self, args):
        self.service.add_lesson(
            args.caller, args.course_id, LessonPayload(title=args.title, content=args.content)
        )
        print(f"✓ Урок добавлен в курс {args.course_id}")

    def lesson_get(self, args):
        self.print_json(self.service.get_lesson(args.id))

    def lesson_update(self, args):
        lesson = self.service.update_lesson(
            args.caller, args.id, LessonPayload(title=args.title, content=args.content)
        )
        self.print_json(lesson)

    def lesson_delete(self, args):
        self.service.delete_lesson(args.caller, args.id)
        print(f"✓ Урок {args.id} удален")

    # Сертификаты

    def certificate_issue(self, args):
        certificate = self.service.issue_certificate(args.caller, args.user_id, args.course_id)
        print(f"✓ Сертификат выдан: {certificate.id}")
        self.print_json(certificate)

    def certificate_get(self, args):
        self.print_json(self.service.get_certificate(args.id))

    def certificate_verify(self, args):
        if self.service.verify_certificate(args.user_id, args.id):
            print(f"✓ Сертификат {args.id} принадлежит пользователю {args.user_id}")
        else:
            print(f"✗ Сертификат {args.id} не принадлежит пользователю {args.user_id}")

    def certificate_delete(self, args):
        self.service.delete_certificate(args.caller, args.id)
        print(f"✓ Сертификат {args.id} удален")

    # Пользователи

    def user_register(self, args):
        user = self.service.register_user(args.username, args.public_key)
        print(f"✓ Пользователь зарегистрирован: {user.id}")
        self.print_json(user)

    def user_get(self, args):
        self.print_json(self.service.get_user(args.id))

    def user_delete(self, args):
        self.service.delete_user(args.id)
        print(f"✓ Пользователь {args.id} удален")

    def build_parser(self) -> argparse.ArgumentParser:
        """Построение парсера аргументов"""
        parser = argparse.ArgumentParser(
            description="Хранилище курсов, уроков, сертификатов и пользователей",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Примеры использования:
  %(prog)s --caller alice course add --title "Algebra I" --description "Введение"
  %(prog)s --caller alice lesson add 0 --title "Lesson 1" --content "..."
  %(prog)s user register --username bob --public-key KEY
  %(prog)s certificate verify 5 --user-id 3
            """
        )
        parser.add_argument('--caller', default=self.settings.caller_principal,
                            help='Идентификатор вызывающего')

        subparsers = parser.add_subparsers(dest='command', help='Доступные команды')

        subparsers.add_parser('init-db', help='Создание таблиц БД').set_defaults(handler=self.init_db)
        subparsers.add_parser('health', help='Проверка хранилища').set_defaults(handler=self.health)
        subparsers.add_parser('stats', help='Статистика хранилища').set_defaults(handler=self.stats)

        # Курсы
        course_parser = subparsers.add_parser('course', help='Операции с курсами')
        course_actions = course_parser.add_subparsers(dest='action', required=True)

        add_parser = course_actions.add_parser('add', help='Создание курса')
        add_parser.add_argument('--title', required=True, help='Название курса')
        add_parser.add_argument('--description', required=True, help='Описание курса')
        add_parser.set_defaults(handler=self.course_add)

        get_parser = course_actions.add_parser('get', help='Получение курса')
        get_parser.add_argument('id', type=int, help='ID курса')
        get_parser.set_defaults(handler=self.course_get)

        update_parser = course_actions.add_parser('update', help='Изменение курса')
        update_parser.add_argument('id', type=int, help='ID курса')
        update_parser.add_argument('--title', required=True, help='Название курса')
        update_parser.add_argument('--description', required=True, help='Описание курса')
        update_parser.set_defaults(handler=self.course_update)

        delete_parser = course_actions.add_parser('delete', help='Удаление курса с уроками')
        delete_parser.add_argument('id', type=int, help='ID курса')
        delete_parser.set_defaults(handler=self.course_delete)

        lessons_parser = course_actions.add_parser('lessons', help='Уроки курса')
        lessons_parser.add_argument('id', type=int, help='ID курса')
        lessons_parser.set_defaults(handler=self.course_lessons)

        # Уроки
        lesson_parser = subparsers.add_parser('lesson', help='Операции с уроками')
        lesson_actions = lesson_parser.add_subparsers(dest='action', required=True)

        add_parser = lesson_actions.add_parser('add', help='Добавление урока в курс')
        add_parser.add_argument('course_id', type=int, help='ID курса')
        add_parser.add_argument('--title', required=True, help='Название урока')
        add_parser.add_argument('--content', required=True, help='Содержимое урока')
        add_parser.set_defaults(handler=self.lesson_add)

        get_parser = lesson_actions.add_parser('get', help='Получение урока')
        get_parser.add_argument('id', type=int, help='ID урока')
        get_parser.set_defaults(handler=self.lesson_get)

        update_parser = lesson_actions.add_parser('update', help='Изменение урока')
        update_parser.add_argument('id', type=int, help='ID урока')
        update_parser.add_argument('--title', required=True, help='Название урока')
        update_parser.add_argument('--content', required=True, help='Содержимое урока')
        update_parser.set_defaults(handler=self.lesson_update)

        delete_parser = lesson_actions.add_parser('delete', help='Удаление урока')
        delete_parser.add_argument('id', type=int, help='ID урока')
        delete_parser.set_defaults(handler=self.lesson_delete)

        # Сертификаты
        certificate_parser = subparsers.add_parser('certificate', help='Операции с сертификатами')
        certificate_actions = certificate_parser.add_subparsers(dest='action', required=True)

        issue_parser = certificate_actions.add_parser('issue', help='Выдача сертификата')
        issue_parser.add_argument('--user-id', type=int, required=True, help='ID пользователя')
        issue_parser.add_argument('--course-id', type=int, required=True, help='ID курса')
        issue_parser.set_defaults(handler=self.certificate_issue)

        get_parser = certificate_actions.add_parser('get', help='Получение сертификата')
        get_parser.add_argument('id', type=int, help='ID сертификата')
        get_parser.set_defaults(handler=self.certificate_get)

        verify_parser = certificate_actions.add_parser('verify', help='Проверка сертификата')
        verify_parser.add_argument('id', type=int, help='ID сертификата')
        verify_parser.add_argument('--user-id', type=int, required=True, help='ID пользователя')
        verify_parser.set_defaults(handler=self.certificate_verify)

        delete_parser = certificate_actions.add_parser('delete', help='Удаление сертификата')
        delete_parser.add_argument('id', type=int, help='ID сертификата')
        delete_parser.set_defaults(handler=self.certificate_delete)

        # Пользователи
        user_parser = subparsers.add_parser('user', help='Операции с пользователями')
        user_actions = user_parser.add_subparsers(dest='action', required=True)

        register_parser = user_actions.add_parser('register', help='Регистрация пользователя')
        register_parser.add_argument('--username', required=True, help='Имя пользователя')
        register_parser.add_argument('--public-key', required=True, help='Публичный ключ')
        register_parser.set_defaults(handler=self.user_register)

        get_parser = user_actions.add_parser('get', help='Получение пользователя')
        get_parser.add_argument('id', type=int, help='ID пользователя')
        get_parser.set_defaults(handler=self.user_get)

        delete_parser = user_actions.add_parser('delete', help='Удаление пользователя')
        delete_parser.add_argument('id', type=int, help='ID пользователя')
        delete_parser.set_defaults(handler=self.user_delete)

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Выполнение команды.

        Returns:
            int: Код завершения
        """
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 0

        try:
            args.handler(args)
        except PlatformError as e:
            print(f"✗ Ошибка: {e.message}")
            self.logger.error(f"Ошибка выполнения команды {args.command}: {e.to_dict()}")
            return 1

        return 0

    def main(self):
        """Главная функция CLI"""
        sys.exit(self.run())


def main():
    PlatformCLI().main()


if __name__ == '__main__':
    main()
