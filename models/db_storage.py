import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.user import User
from models.todo import Todo
from models.refresh_token import RefreshToken
from utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "User": User,
    "Todo": Todo,
    "RefreshToken": RefreshToken,
}


class DBStorage:
    __engine = None
    __session = None

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize engine for the given SQLAlchemy URL"""
        engine_kwargs = {"echo": echo, "future": True}
        if database_url.startswith("sqlite"):
            # Request threads and background jobs share the engine
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty db
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.__engine = create_engine(database_url, **engine_kwargs)

        # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @property
    def engine(self):
        return self.__engine

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)
        logger.info("Database ready (%s)", self.__engine.url.render_as_string(hide_password=True))

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session; roll back and raise PersistenceError on failure"""
        try:
            self.__session.commit()
        except SQLAlchemyError as exc:
            self.__session.rollback()
            logger.error("Commit failed: %s", exc.__class__.__name__)
            raise PersistenceError("Failed to write to the database") from exc

    def rollback(self):
        self.__session.rollback()

    def get(self, cls, id):
        """Fetch one non-deleted object by class and ID"""
        if cls not in classes.values():
            return None
        return (
            self.__session.query(cls)
            .filter(cls.id == id, cls.active())
            .first()
        )

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def dispose(self):
        self.close()
        self.__engine.dispose()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
