import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from .models import User, Setting
from .session import get_session

logger = logging.getLogger(__name__)

TelegramId = Union[int, str]


class UserRepository:
    """Users and their settings, upserted with a read-then-write in one transaction.

    Works on any database SQLAlchemy supports. The unique constraints on
    ``users.telegram_id`` and ``settings(user_id, key)`` still guard against
    duplicates if two writers race; the loser gets an ``IntegrityError``.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _session(self):
        return get_session(self.session_factory)

    # Users

    def find_user_by_telegram_id(self, telegram_id: TelegramId) -> Optional[dict]:
        """Fetch a user by Telegram id, or None."""
        with self._session() as session:
            user = session.query(User).filter(User.telegram_id == str(telegram_id)).first()
            return user.to_dict() if user else None

    def create_user(
        self,
        telegram_id: TelegramId,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> dict:
        """Insert a new user. Raises IntegrityError if the Telegram id is taken."""
        with self._session() as session:
            user = User(
                telegram_id=str(telegram_id),
                username=username,
                first_name=first_name,
                last_name=last_name
            )
            session.add(user)
            session.flush()
            logger.info(f"Created user {user.id} for telegram_id {telegram_id}")
            return user.to_dict()

    def upsert_user(
        self,
        telegram_id: TelegramId,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> dict:
        """Insert the user if absent, else refresh the name fields and updated_at."""
        with self._session() as session:
            user = self._upsert_user(session, str(telegram_id), username, first_name, last_name)
            return user.to_dict()

    def delete_user(self, telegram_id: TelegramId) -> bool:
        """Delete a user together with all of their settings."""
        with self._session() as session:
            user = session.query(User).filter(User.telegram_id == str(telegram_id)).first()
            if not user:
                return False
            session.delete(user)
            logger.info(f"Deleted user with telegram_id: {telegram_id}")
            return True

    def _upsert_user(self, session: Session, telegram_id: str, username, first_name, last_name) -> User:
        user = session.query(User).filter(User.telegram_id == telegram_id).first()

        if user:
            logger.info(f"Refreshing existing user: {user.id}")
            user.username = username
            user.first_name = first_name
            user.last_name = last_name
            user.updated_at = datetime.utcnow()
        else:
            logger.info(f"Creating new user with telegram_id: {telegram_id}")
            user = User(
                telegram_id=telegram_id,
                username=username,
                first_name=first_name,
                last_name=last_name
            )
            session.add(user)

        session.flush()
        return user

    # Settings

    def get_setting(self, user_id: int, key: str) -> Optional[str]:
        """Value of a user's setting, or None if it was never set."""
        with self._session() as session:
            setting = session.query(Setting).filter(
                Setting.user_id == user_id,
                Setting.key == key
            ).first()
            return setting.value if setting else None

    def upsert_setting(self, user_id: int, key: str, value: Optional[str]) -> dict:
        """Create or overwrite the setting identified by (user_id, key)."""
        with self._session() as session:
            setting = self._upsert_setting(session, user_id, key, value)
            return setting.to_dict()

    def _upsert_setting(self, session: Session, user_id: int, key: str, value) -> Setting:
        setting = session.query(Setting).filter(
            Setting.user_id == user_id,
            Setting.key == key
        ).first()

        if setting:
            setting.value = value
            setting.updated_at = datetime.utcnow()
        else:
            setting = Setting(user_id=user_id, key=key, value=value)
            session.add(setting)

        session.flush()
        return setting


class NativeUpsertRepository(UserRepository):
    """Same operations, but upserts are a single INSERT ... ON CONFLICT DO UPDATE.

    Only SQLite and PostgreSQL have that statement; other dialects fall back
    to the read-then-write path of UserRepository.
    """

    @staticmethod
    def _dialect_insert(session: Session):
        dialect = session.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert
        if dialect == "postgresql":
            return postgresql.insert
        return None

    def _upsert_user(self, session: Session, telegram_id: str, username, first_name, last_name) -> User:
        insert = self._dialect_insert(session)
        if insert is None:
            return super()._upsert_user(session, telegram_id, username, first_name, last_name)

        now = datetime.utcnow()
        stmt = insert(User.__table__).values(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["telegram_id"],
            set_={
                "username": stmt.excluded.username,
                "first_name": stmt.excluded.first_name,
                "last_name": stmt.excluded.last_name,
                "updated_at": stmt.excluded.updated_at,
            }
        )
        session.execute(stmt)
        logger.info(f"Upserted user with telegram_id: {telegram_id}")
        return session.query(User).filter(User.telegram_id == telegram_id).one()

    def _upsert_setting(self, session: Session, user_id: int, key: str, value) -> Setting:
        insert = self._dialect_insert(session)
        if insert is None:
            return super()._upsert_setting(session, user_id, key, value)

        now = datetime.utcnow()
        stmt = insert(Setting.__table__).values(
            user_id=user_id,
            key=key,
            value=value,
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "key"],
            set_={
                "value": stmt.excluded.value,
                "updated_at": stmt.excluded.updated_at,
            }
        )
        session.execute(stmt)
        return session.query(Setting).filter(
            Setting.user_id == user_id,
            Setting.key == key
        ).one()


def get_repository(strategy: str, session_factory: sessionmaker) -> UserRepository:
    """Pick the persistence binding by name ('native' or 'orm')."""
    if strategy == "native":
        return NativeUpsertRepository(session_factory)
    if strategy == "orm":
        return UserRepository(session_factory)
    raise ValueError(f"Unknown upsert strategy: {strategy}")
