# app/api/routers/chat.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from app.domain.schemas import ChatIn
from app.services.chat_client import ChatClient, ChatUpstreamError

router = APIRouter(tags=["chat"])


def get_chat_client() -> ChatClient:
    return ChatClient()


@router.post("/chat")
def chat(payload: ChatIn, client: ChatClient = Depends(get_chat_client)):
    """Proxy do modelu czatu, odpowiedz jako strumien SSE."""
    messages = [m.model_dump() for m in payload.messages]
    try:
        stream = client.stream_chat(messages)
    except ChatUpstreamError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    return StreamingResponse(stream, media_type="text/event-stream")
