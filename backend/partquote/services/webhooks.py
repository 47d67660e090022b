import requests
import json
import logging
import os
import re
import time
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field

from partquote.models.quote import Configuration, DocumentHeader, ItemReference
from partquote.services.mapping import (
    coerce_configuration, configuration_from_item, parse_form_fill, reference_from_item,
)

logger = logging.getLogger(__name__)

CHAT_WEBHOOK_URL = os.getenv("CHAT_WEBHOOK_URL", "http://n8n:5678/webhook/part-quote-chat")
DOCUMENT_WEBHOOK_URL = os.getenv("DOCUMENT_WEBHOOK_URL", "http://n8n:5678/webhook/part-quote-documents")
WEBHOOK_TIMEOUT = float(os.getenv("WEBHOOK_TIMEOUT", "30"))

DEFAULT_CHAT_REPLY = "Thank you for your message. How can I help you further?"
INVALID_CHAT_REPLY = "Sorry, I received an invalid response. Please try again."
CHAT_CONNECTION_ERROR = "Connection error. Please try again."


class WebhookError(Exception):
    """The automation webhook was unreachable or answered with something unusable."""


class WebhookClient:
    """POSTs to an automation webhook with a bounded timeout and at most one retry."""

    def __init__(self, webhook_url: str, timeout: float = WEBHOOK_TIMEOUT, max_retries: int = 2):
        self.webhook = webhook_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        logger.debug("%s initialized with webhook=%s max_retries=%s", type(self).__name__, self.webhook, self.max_retries)

    def post(self, **kwargs) -> requests.Response:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                logger.debug("Calling webhook attempt=%s url=%s", attempt, self.webhook)
                resp = requests.post(self.webhook, timeout=self.timeout, **kwargs)
                resp.raise_for_status()
                logger.info("Webhook url=%s status=%s", self.webhook, resp.status_code)
                return resp
            except requests.RequestException as e:
                last_error = e
                logger.warning("Attempt %s url=%s: webhook call failed: %s", attempt, self.webhook, e)
            if attempt < self.max_retries:
                time.sleep(0.5 * attempt)
        raise WebhookError(f"Webhook {self.webhook} failed after {self.max_retries} attempts: {last_error}")


# --- chat transport ---

class ChatReply(BaseModel):
    type: str = "bot"
    content: str
    options: Optional[List[str]] = None
    form_fill: Optional[Dict[str, Any]] = None


_MARKDOWN_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"^(?:-{3,}|_{3,}|\*{3,})$", re.M), ""),
    (re.compile(r"^#{1,6}\s+", re.M), ""),
    (re.compile(r"^\d+\.\s+", re.M), "• "),
    (re.compile(r"^[-*+]\s+", re.M), "• "),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\*{3,}"), ""),
    (re.compile(r"-{3,}"), ""),
    (re.compile(r"\n\s*\n\s*\n"), "\n\n"),
]


def clean_markdown(text: str) -> str:
    for pattern, repl in _MARKDOWN_RULES:
        text = pattern.sub(repl, text)
    return text.strip()


def new_session_id() -> str:
    return uuid4().hex


def compose_step_help(step: int, title: str, data: Dict[str, Any]) -> str:
    """Message asking the assistant for help with one configurator step."""
    entries = [f"{k}: {v}" for k, v in data.items() if v not in ("", 0, None)]
    filled = "\n• ".join(entries) if entries else "No data filled yet"
    return (
        f'I need help with "{title}" (Step {step}).\n\n'
        f"Current filled data:\n• {filled}\n\n"
        "Please provide guidance for this step."
    )


class ChatClient(WebhookClient):
    def __init__(self, webhook_url: Optional[str] = None, **kwargs):
        super().__init__(webhook_url or CHAT_WEBHOOK_URL, **kwargs)

    def send(self, text: str, session_id: str) -> ChatReply:
        body = [{"sessionId": session_id, "action": "sendMessage", "chatInput": text}]
        try:
            resp = self.post(json=body, headers={"Content-Type": "application/json"})
        except WebhookError as e:
            logger.error("Chat webhook unreachable: %s", e)
            return ChatReply(type="system", content=CHAT_CONNECTION_ERROR)

        try:
            data = json.loads(resp.text) if resp.text else {}
        except ValueError:
            logger.error("Invalid JSON from chat webhook: %r", resp.text[:200])
            return ChatReply(content=INVALID_CHAT_REPLY)
        return self.parse_reply(data)

    def parse_reply(self, data: Any) -> ChatReply:
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            data = {}

        content = clean_markdown(str(data.get("output") or DEFAULT_CHAT_REPLY))

        options = None
        button = data.get("button")
        if button:
            if isinstance(button, str):
                options = [b.strip() for b in button.split(",") if b.strip()]
            else:
                options = [str(button)]

        form_fill = None
        raw_fill = data.get("fromfill") or data.get("formfill")
        if raw_fill:
            fields = raw_fill if isinstance(raw_fill, dict) else parse_form_fill(str(raw_fill))
            form_fill = coerce_configuration(fields).to_payload()
            logger.info("Chat reply carried form fill for %s", form_fill.get("productGroup"))

        return ChatReply(content=content, options=options or None, form_fill=form_fill)


# --- document ingestion ---

class IngestedItem(BaseModel):
    reference: ItemReference
    configuration: Configuration


class IngestedDocument(BaseModel):
    header: DocumentHeader
    items: List[IngestedItem] = Field(default_factory=list)


def header_from_payload(data: Dict[str, Any]) -> DocumentHeader:
    return DocumentHeader(
        supplier_name=data.get("supplier_name") or "N/A",
        customer_name=data.get("customer_name") or "N/A",
        type_of_document=data.get("type_of_document") or "RFQ",
        date=data.get("date") or date.today().isoformat(),
        customer_number=data.get("customer_number") or "N/A",
        order_or_rfq_number=data.get("order_or_rfq_number") or "N/A",
    )


def items_from_payload(items: List[Any]) -> List[IngestedItem]:
    result = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object item at index %s", index)
            continue
        result.append(IngestedItem(reference=reference_from_item(item, index),
                                   configuration=configuration_from_item(item)))
    return result


class DocumentIngestionClient(WebhookClient):
    def __init__(self, webhook_url: Optional[str] = None, **kwargs):
        super().__init__(webhook_url or DOCUMENT_WEBHOOK_URL, **kwargs)

    def ingest(self, filename: str, content: bytes, content_type: Optional[str] = None) -> IngestedDocument:
        if not content:
            raise WebhookError("No file provided for upload")
        logger.info("Sending document name=%s size=%s type=%s", filename, len(content), content_type)
        resp = self.post(
            files={"file": (filename, content, content_type or "application/octet-stream")},
            headers={"Accept": "application/json"},
        )
        try:
            data = json.loads(resp.text)
        except ValueError:
            logger.error("Invalid JSON from document webhook: %r", resp.text[:200])
            raise WebhookError("Received invalid JSON response from server")

        if isinstance(data, list) and data:
            data = data[0]
        if not isinstance(data, dict) or not isinstance(data.get("requested_items"), list):
            logger.warning("Unexpected document response format: %r", data)
            raise WebhookError("Unexpected response format from server")

        document = IngestedDocument(header=header_from_payload(data), items=items_from_payload(data["requested_items"]))
        logger.info("Document %s yielded %s items", filename, len(document.items))
        return document
