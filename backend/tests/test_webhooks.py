from __future__ import annotations

import pytest
import requests

from partquote.services import webhooks
from partquote.services.catalog import ProductFamily
from partquote.services.webhooks import (
    CHAT_CONNECTION_ERROR, DEFAULT_CHAT_REPLY, INVALID_CHAT_REPLY, ChatClient, DocumentIngestionClient,
    WebhookError, clean_markdown, compose_step_help,
)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(webhooks.time, "sleep", lambda seconds: None)


@pytest.fixture
def post_calls(monkeypatch: pytest.MonkeyPatch):
    calls = []
    responses = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(webhooks.requests, "post", fake_post)
    return calls, responses


def test_chat_send_posts_session_envelope(post_calls, fake_response) -> None:
    calls, responses = post_calls
    responses.append(fake_response([{"output": "**Hello** there", "button": "Passfeder, Nutenstein"}]))

    reply = ChatClient("http://hook/chat", timeout=3).send("Hi", "abc123")
    url, kwargs = calls[0]
    assert url == "http://hook/chat"
    assert kwargs["timeout"] == 3
    assert kwargs["json"] == [{"sessionId": "abc123", "action": "sendMessage", "chatInput": "Hi"}]
    assert reply.type == "bot"
    assert reply.content == "Hello there"
    assert reply.options == ["Passfeder", "Nutenstein"]
    assert reply.form_fill is None


def test_chat_retries_once_then_reports_connection_error(post_calls) -> None:
    calls, responses = post_calls
    responses.extend([requests.ConnectionError("down"), requests.Timeout("slow")])
    reply = ChatClient("http://hook/chat").send("Hi", "s")
    assert len(calls) == 2
    assert reply.type == "system"
    assert reply.content == CHAT_CONNECTION_ERROR


def test_chat_recovers_on_retry(post_calls, fake_response) -> None:
    calls, responses = post_calls
    responses.extend([fake_response(status_code=503, text="busy"), fake_response({"output": "ok"})])
    assert ChatClient("http://hook/chat").send("Hi", "s").content == "ok"
    assert len(calls) == 2


def test_chat_invalid_json(post_calls, fake_response) -> None:
    _, responses = post_calls
    responses.append(fake_response(text="<html>oops</html>"))
    assert ChatClient("http://hook/chat").send("Hi", "s").content == INVALID_CHAT_REPLY


def test_parse_reply_form_fill_string() -> None:
    reply = ChatClient("http://hook/chat").parse_reply({
        "output": "Filled in.",
        "fromfill": "productGroup: Passfeder• material: C45• breite: 6• hohe: 4• tiefe: 10• quantity: 25",
    })
    fill = reply.form_fill
    assert fill["productGroup"] == ProductFamily.KEYWAY.value
    assert (fill["breite"], fill["hohe"], fill["tiefe"]) == (6.0, 4.0, 10.0)
    assert fill["quantity"] == 25
    assert fill["coating"] == "none"


def test_parse_reply_defaults() -> None:
    reply = ChatClient("http://hook/chat").parse_reply([])
    assert reply.content == DEFAULT_CHAT_REPLY
    assert reply.options is None


def test_clean_markdown() -> None:
    text = "# Title\n**bold** and `code`\n1. first\n- second\n[link](http://x)"
    assert clean_markdown(text) == "Title\nbold and code\n• first\n• second\nlink"


def test_compose_step_help_skips_empty_values() -> None:
    message = compose_step_help(2, "Dimensions", {"breite": 6, "hohe": 0, "material": ""})
    assert '"Dimensions" (Step 2)' in message
    assert "• breite: 6" in message
    assert "hohe" not in message
    assert compose_step_help(1, "Product", {}).count("No data filled yet") == 1


def test_document_ingest_maps_items(post_calls, fake_response) -> None:
    calls, responses = post_calls
    responses.append(fake_response([{
        "customer_name": "Muster GmbH",
        "type_of_document": "RFQ",
        "date": "2026-10-01",
        "requested_items": [
            {"pos": 1, "article_name": "Passfeder DIN 6885 A 6x4x10 C45K", "qty": 400, "unit": "St"},
            "garbage",
            {"article_name": "Nutenstein", "dimensions": "8x8x16", "material": "Messing"},
        ],
    }]))

    document = DocumentIngestionClient("http://hook/docs").ingest("rfq.pdf", b"%PDF", "application/pdf")
    assert calls[0][1]["files"]["file"] == ("rfq.pdf", b"%PDF", "application/pdf")
    assert document.header.customer_name == "Muster GmbH"
    assert document.header.supplier_name == "N/A"
    assert len(document.items) == 2
    first, second = document.items
    assert first.reference.pos == 1
    assert first.configuration.quantity == 400
    assert first.configuration.material == "C45"
    assert second.reference.pos == 3
    assert second.configuration.material == "Messing"
    assert (second.configuration.width, second.configuration.depth) == (8, 16)


def test_document_ingest_rejects_empty_upload(post_calls) -> None:
    calls, _ = post_calls
    with pytest.raises(WebhookError, match="No file"):
        DocumentIngestionClient("http://hook/docs").ingest("empty.pdf", b"")
    assert calls == []


@pytest.mark.parametrize(
    "response_kwargs, message",
    [
        ({"text": "not json"}, "invalid JSON"),
        ({"payload": {"items": []}}, "Unexpected response format"),
        ({"payload": []}, "Unexpected response format"),
    ],
)
def test_document_ingest_bad_responses(post_calls, fake_response, response_kwargs, message) -> None:
    _, responses = post_calls
    responses.append(fake_response(**response_kwargs))
    with pytest.raises(WebhookError, match=message):
        DocumentIngestionClient("http://hook/docs").ingest("rfq.pdf", b"data")
