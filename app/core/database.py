"""
Database Connection and Setup
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for models
Base = declarative_base()


def build_session_factory(database_url: str):
    """Create engine + session factory and make sure the tables exist"""
    connect_args = {}
    engine_kwargs = {"pool_pre_ping": True, "echo": False}
    if database_url.startswith("sqlite"):
        # Status updates are written from dispatch worker threads
        connect_args["check_same_thread"] = False
    else:
        engine_kwargs.update(pool_size=10, max_overflow=20)

    engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    """Initialize database (create tables)"""
    # Models must be imported so they register on Base.metadata
    from app.models import NotificationLog  # noqa: F401
    Base.metadata.create_all(bind=engine)
