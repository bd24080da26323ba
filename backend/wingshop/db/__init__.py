import importlib

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from wingshop.config import settings
from wingshop.utils.log import get_logger

log = get_logger("db")

DATABASE_URL = settings.DATABASE_URL
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# model modules must be imported before create_all so metadata is populated
MODEL_MODULES = [
    "wingshop.models.order",
    "wingshop.models.storage_entry",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    The database only holds the order ledger and the key-value entries backing
    server-side cart storage; the payments platform stays the record of payment.
    Passing reset=True (or RESET_DB=1) drops and recreates every table.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or settings.RESET_DB:
        log.info("Resetting database...")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.debug("Database initialized.")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
