import os
import urllib.parse
from datetime import datetime, timezone

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding='utf-8')

DEFAULT_DATABASE_URL = "sqlite:///./qr_loyalty.db"


def normalize_database_url(url: str) -> str:
    if not url.startswith("postgres"):
        # urlunparse drops the empty netloc of sqlite:// and sqlite:///path
        return url
    # Ensure proper encoding by parsing and reconstructing the URL
    try:
        return urllib.parse.urlunparse(urllib.parse.urlparse(url))
    except ValueError:
        return url.encode('utf-8', errors='replace').decode('utf-8')


def engine_options(url: str) -> dict:
    options = {}
    if url.startswith("postgres"):
        options["connect_args"] = {"options": "-c timezone=utc"}
    elif url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        # in-memory database: every session must share the one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
    return options


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL)

engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def utcnow() -> datetime:
    # Naive UTC, matching the TIMESTAMP columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
