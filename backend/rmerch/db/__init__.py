import importlib

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from rmerch.config import settings
from rmerch.utils.logging import get_logger

log = get_logger("rmerch.db")

Base = declarative_base()

# List of model modules we expect to import here (add new modules here)
MODEL_MODULES = [
    "rmerch.models.product",
    "rmerch.models.cart",
    "rmerch.models.cart_item",
    "rmerch.models.order",
    "rmerch.models.user",
    "rmerch.models.review",
    "rmerch.models.subscriber",
]


def build_engine(url: str):
    """
    Create the process-wide engine for `url`.

    SQLite gets `BEGIN IMMEDIATE` for every transaction so that concurrent
    writers serialize on the database lock instead of failing at commit time.
    The pysqlite driver's own transaction handling is switched off for that,
    which also makes SAVEPOINTs work.
    """
    if url.startswith("sqlite"):
        eng = create_engine(
            url,
            future=True,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(eng, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(eng, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return eng
    return create_engine(url, future=True, echo=False, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Imports every model module so metadata is populated, then creates missing
    tables. With reset=True (or RESET_DB set) all tables are dropped first.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or settings.RESET_DB:
        log.warning("Resetting database schema")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized: %s", sorted(Base.metadata.tables.keys()))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
