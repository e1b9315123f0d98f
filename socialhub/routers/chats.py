"""Chat and message API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Message, User
from ..schemas import (
    CallStartRequest,
    ChatCreateRequest,
    ChatListResponse,
    ChatResponse,
    MarkReadResponse,
    MessageListResponse,
    MessageResponse,
    MessageSendRequest,
    SuggestionRequest,
    SuggestionResponse,
    UserPublicProfile,
)
from ..services import (
    ChatView,
    build_chat_view,
    create_chat,
    end_call,
    get_current_user,
    list_chats,
    list_messages,
    mark_messages_read,
    open_chat_with_friend,
    require_participant,
    send_message,
    start_call,
    suggest_reply,
)

router = APIRouter(prefix="/chats", tags=["chats"])


def _chat_response(view: ChatView) -> ChatResponse:
    chat = view.chat
    return ChatResponse(
        id=chat.id,
        type=chat.type,
        name=chat.name,
        display_name=view.display_name,
        last_message=chat.last_message,
        last_message_at=chat.last_message_at,
        created_at=chat.created_at,
        participants=[UserPublicProfile.model_validate(member) for member in chat.participants],
        unread_count=view.unread_count,
    )


def _message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        chat_id=message.chat_id,
        sender_id=message.sender_id,
        content=message.content,
        type=message.type,
        is_ai_suggestion=message.is_ai_suggestion,
        created_at=message.created_at,
        read_by=[reader.id for reader in message.read_by],
    )


@router.get("/", response_model=ChatListResponse)
async def list_my_chats(
    search: str | None = Query(default=None, max_length=120),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ChatListResponse:
    views = list_chats(db, user=current_user, search=search)
    return ChatListResponse(items=[_chat_response(view) for view in views])


@router.post("/", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat_endpoint(
    payload: ChatCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ChatResponse:
    chat = create_chat(
        db,
        creator=current_user,
        type_=payload.type,
        name=payload.name,
        participant_ids=payload.participant_ids,
    )
    return _chat_response(build_chat_view(db, chat, current_user))


@router.post("/suggestions", response_model=SuggestionResponse)
async def suggest_reply_endpoint(
    payload: SuggestionRequest,
    _: User = Depends(get_current_user),
) -> SuggestionResponse:
    return SuggestionResponse(suggestion=suggest_reply(payload.messages, payload.context))


@router.post("/with/{friend_id}", response_model=ChatResponse)
async def open_friend_chat(
    friend_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ChatResponse:
    chat = open_chat_with_friend(db, user=current_user, friend_id=friend_id)
    return _chat_response(build_chat_view(db, chat, current_user))


@router.get("/{chat_id}", response_model=ChatResponse)
async def read_chat(
    chat_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ChatResponse:
    chat = require_participant(db, chat_id=chat_id, user=current_user)
    return _chat_response(build_chat_view(db, chat, current_user))


@router.get("/{chat_id}/messages", response_model=MessageListResponse)
async def read_messages(
    chat_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageListResponse:
    messages = list_messages(db, chat_id=chat_id, user=current_user)
    return MessageListResponse(chat_id=chat_id, items=[_message_response(item) for item in messages])


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    chat_id: UUID,
    payload: MessageSendRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageResponse:
    message = send_message(
        db,
        chat_id=chat_id,
        sender=current_user,
        content=payload.content,
        is_ai_suggestion=payload.is_ai_suggestion,
    )
    return _message_response(message)


@router.post("/{chat_id}/read", response_model=MarkReadResponse)
async def mark_chat_read(
    chat_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MarkReadResponse:
    updated = mark_messages_read(db, chat_id=chat_id, user=current_user)
    return MarkReadResponse(chat_id=chat_id, updated=updated)


@router.post("/{chat_id}/calls", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def start_call_endpoint(
    chat_id: UUID,
    payload: CallStartRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageResponse:
    return _message_response(start_call(db, chat_id=chat_id, user=current_user, kind=payload.kind))


@router.post("/{chat_id}/calls/end", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def end_call_endpoint(
    chat_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageResponse:
    return _message_response(end_call(db, chat_id=chat_id, user=current_user))
