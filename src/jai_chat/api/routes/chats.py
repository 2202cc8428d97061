"""Chat CRUD, message listing, and the chat-turn endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from jai_chat.api.deps import get_app, get_identity
from jai_chat.api.schemas import ChatTurnRequest, CreateChatRequest
from jai_chat.app import JaiChatApp
from jai_chat.core.identity import Identity
from jai_chat.core.modes import list_modes

router = APIRouter(prefix="/api", tags=["chats"])


@router.get("/modes")
async def get_modes() -> list[dict]:
    return [
        {"id": mode.key, "name": mode.name, "description": mode.description}
        for mode in list_modes()
    ]


@router.get("/chats")
async def get_chats(
    identity: Identity = Depends(get_identity),
    jai: JaiChatApp = Depends(get_app),
) -> list[dict]:
    chats = await jai.chat_service.list_chats(identity)
    return [chat.to_dict() for chat in chats]


@router.post("/chats")
async def create_chat(
    body: CreateChatRequest,
    identity: Identity = Depends(get_identity),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    chat = await jai.chat_service.create_chat(identity, body.title)
    return chat.to_dict()


@router.delete("/chats/{chat_id}")
async def delete_chat(
    chat_id: str,
    identity: Identity = Depends(get_identity),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    await jai.chat_service.delete_chat(identity, chat_id)
    return {"success": True}


@router.get("/chats/{chat_id}/messages")
async def get_messages(
    chat_id: str,
    identity: Identity = Depends(get_identity),
    jai: JaiChatApp = Depends(get_app),
) -> list[dict]:
    messages = await jai.chat_service.get_messages(identity, chat_id)
    return [message.to_dict() for message in messages]


@router.post("/chat")
async def send_chat_turn(
    body: ChatTurnRequest,
    identity: Identity = Depends(get_identity),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    ai_turn = await jai.chat_service.send(
        identity,
        body.chat_id,
        message=body.message,
        image_url=body.image_url,
        mode_key=body.mode,
    )
    return ai_turn.to_dict()
