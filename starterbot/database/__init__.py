from .models import User, Setting, Base
from .session import get_session, init_db, make_engine, make_session_factory
from .repository import UserRepository, NativeUpsertRepository, get_repository

__all__ = [
    'User', 'Setting', 'Base',
    'get_session', 'init_db', 'make_engine', 'make_session_factory',
    'UserRepository', 'NativeUpsertRepository', 'get_repository'
]
