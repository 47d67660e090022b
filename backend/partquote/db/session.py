from typing import Dict, Optional
from sqlmodel import create_engine, Session
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./partquote.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

_engines: Dict[str, object] = {}


def get_engine(url: Optional[str] = None):
    url = url or DATABASE_URL
    engine = _engines.get(url)
    if engine is None:
        # cost lookups fan out over worker threads
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, echo=DATABASE_ECHO, connect_args=connect_args)
        _engines[url] = engine
    return engine


def get_session() -> Session:
    engine = get_engine()
    return Session(engine)
