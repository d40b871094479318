"""
Chat bot webhook route.

Handles:
  /api/bot/updates

The chat network posts one update per request; the replies for that update
come back in the response body for the transport to deliver.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from bot_service import ChatBot

router = APIRouter(tags=["bot"])


def get_chat_bot(request: Request) -> ChatBot:
    return request.app.state.chat_bot


class BotChat(BaseModel):
    id: int


class BotMessage(BaseModel):
    chat: BotChat
    text: Optional[str] = None


class BotUpdate(BaseModel):
    update_id: Optional[int] = None
    message: Optional[BotMessage] = None


@router.post("/api/bot/updates")
def api_bot_update(update: BotUpdate, bot: ChatBot = Depends(get_chat_bot)) -> Dict[str, Any]:
    if update.message is None:
        return {"replies": []}
    chat_id = update.message.chat.id
    replies = bot.handle_message(chat_id, update.message.text)
    return {
        "chat_id": chat_id,
        "replies": [reply.to_dict() for reply in replies],
    }
