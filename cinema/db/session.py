from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from cinema.core.config import settings


def serialize_sqlite_writers(engine: Engine) -> Engine:
    """Make every SQLite transaction take the database write lock up front.

    SQLite ignores SELECT ... FOR UPDATE, so the row locks the services take
    would not exclude anyone. BEGIN IMMEDIATE makes each transaction wait for
    the previous writer to finish instead. PostgreSQL engines are untouched.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = serialize_sqlite_writers(create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True
))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Dependency returning the factory services use to open their own transactions."""
    return SessionLocal
