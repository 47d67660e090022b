from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import logging

from partquote.services.webhooks import ChatClient, compose_step_help, new_session_id

logger = logging.getLogger(__name__)
router = APIRouter()


class ChatMessage(BaseModel):
    message: str
    session_id: Optional[str] = None


class StepHelp(BaseModel):
    step: int
    title: str
    data: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None


def _send(text: str, session_id: Optional[str]) -> Dict[str, Any]:
    session_id = session_id or new_session_id()
    reply = ChatClient().send(text, session_id)
    logger.info("Chat session=%s reply_type=%s form_fill=%s", session_id[:8], reply.type, reply.form_fill is not None)
    return {"session_id": session_id, "reply": reply.model_dump()}


@router.post("")
async def send_message(msg: ChatMessage):
    return _send(msg.message, msg.session_id)


@router.post("/step-help")
async def ask_for_step_help(req: StepHelp):
    message = compose_step_help(req.step, req.title, req.data)
    result = _send(message, req.session_id)
    result["message"] = message
    return result
