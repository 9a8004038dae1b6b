"""Twilio WhatsApp webhook: form-encoded message in, TwiML reply out."""

import logging
from typing import Optional
from xml.sax.saxutils import escape

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import Response

from booking_bot.schemas.conversation_schema import TurnReply

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])

TWIML_MEDIA_TYPE = "text/xml"


def render_twiml(reply: TurnReply) -> str:
    """One ``<Message>`` per reply message, text XML-escaped."""
    messages = "".join(f"<Message>{escape(m)}</Message>" for m in reply.messages)
    return f'<?xml version="1.0" encoding="UTF-8"?><Response>{messages}</Response>'


@router.post("/whatsapp")
async def receive_whatsapp(
    request: Request,
    body: str = Form("", alias="Body"),
    sender: Optional[str] = Form(None, alias="From"),
) -> Response:
    if not sender or not sender.strip():
        raise HTTPException(status_code=400, detail="Missing From")

    reply = await request.app.state.bot.handle_message(sender, body)
    logger.debug("Replying with %d message(s)", len(reply.messages))
    return Response(content=render_twiml(reply), media_type=TWIML_MEDIA_TYPE)
