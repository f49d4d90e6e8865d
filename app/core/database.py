"""
Database connection and session management
"""
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from app.core.config import settings


def build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for the configured backend"""
    if database_url.startswith("sqlite"):
        # SQLite serializes writers; the busy timeout makes concurrent
        # counter updates wait instead of failing with "database is locked"
        sqlite_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": settings.DATABASE_POOL_TIMEOUT},
            echo=settings.LOG_LEVEL == "DEBUG"
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        database_url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
        pool_pre_ping=True,  # Validate connections before use
        echo=settings.LOG_LEVEL == "DEBUG"
    )


engine = build_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base for models
Base = declarative_base()


def init_db():
    """Create tables that do not exist yet (migrations own the schema in production)"""
    import app.models  # noqa: F401  register mappers on Base.metadata
    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class DatabaseManager:
    """Database connection manager"""

    @staticmethod
    def health_check(db: Session) -> bool:
        """Check database connection health"""
        try:
            db.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
