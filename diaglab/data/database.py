# diaglab/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from diaglab.utils.settings import DATABASE_URL, DB_ECHO
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        #in-memory sqlite needs a single shared connection across threads
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_engine(DATABASE_URL, echo=DB_ECHO, **_engine_kwargs(DATABASE_URL))

if DATABASE_URL.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        #sqlite ignores ON DELETE rules unless asked per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    # models must be imported before create_all so they are registered in Base.metadata
    import diaglab.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {sorted(Base.metadata.tables.keys())}")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
