from __future__ import annotations

import json

import pytest
from sqlmodel import Session, SQLModel

from partquote.db import session as db_session
from partquote.models import catalog as catalog_models  # noqa: F401
from partquote.models import quote as quote_models  # noqa: F401
from partquote.models.quote import Configuration
from partquote.services.catalog import seed_catalog


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str | None = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            import requests
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def db_url(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite:///{tmp_path / 'partquote-test.db'}"
    monkeypatch.setattr(db_session, "DATABASE_URL", url)
    engine = db_session.get_engine(url)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_catalog(session)
    return url


@pytest.fixture
def session_factory(db_url):
    engine = db_session.get_engine(db_url)
    return lambda: Session(engine)


@pytest.fixture
def client(db_url, monkeypatch: pytest.MonkeyPatch):
    from fastapi.testclient import TestClient

    from partquote.api import cart, documents
    from partquote.main import app

    cart.reset_cart()
    documents.reset_document()
    with TestClient(app) as test_client:
        yield test_client
    cart.reset_cart()
    documents.reset_document()


def make_config(**overrides) -> Configuration:
    values = dict(
        product_group="Passfeder (Keyway)",
        din_norm="DIN 6885",
        material="C45",
        width=6,
        height=4,
        depth=10,
        bore="none",
        number_of_bores=1,
        coating="none",
        hardening="none",
        tolerance_width="none",
        tolerance_height="none",
        quantity=1,
    )
    values.update(overrides)
    return Configuration(**values)


@pytest.fixture
def config_factory():
    return make_config
