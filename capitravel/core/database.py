import logging
import os

from dotenv import load_dotenv
from sqlmodel import SQLModel, Session, create_engine

load_dotenv()

logger = logging.getLogger("capitravel.database")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./capitravel.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# SQLite connections are bound to the creating thread unless told otherwise,
# and FastAPI runs sync dependencies in a threadpool.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=SQL_ECHO, connect_args=connect_args)


def create_db_and_tables():
    # Table classes must be imported so they register on SQLModel.metadata.
    from capitravel.models import sql_models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured at %s", engine.url.render_as_string(hide_password=True))


def get_session():
    with Session(engine) as session:
        yield session
