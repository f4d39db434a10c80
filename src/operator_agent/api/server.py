"""FastAPI server for the operator agent."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from ..agent import OperatorAgent
from ..exceptions import ConversationNotFound, ValidationError
from ..logging import get_logger
from ..streaming import StreamChannel
from .deps import get_agent, get_user_id
from .schemas import (
    ChatRequest,
    ConversationDetail,
    ConversationInfo,
    CreateConversationRequest,
    MessageInfo,
    PendingActionInfo,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/operator")


@router.post("/chat")
async def chat(
    body: ChatRequest,
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> StreamingResponse:
    """Send a message and stream the turn back as server-sent events."""
    try:
        conversation = await agent.conversations.begin_turn(
            user_id, body.message, body.conversation_id
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConversationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    channel = StreamChannel()
    turn = asyncio.create_task(
        agent.conversations.run_turn(conversation, body.message.strip(), channel)
    )

    async def stream():
        try:
            async for chunk in channel.sse():
                yield chunk
        finally:
            # also runs on client disconnect; a no-op once the turn is over
            if not channel.is_closed:
                logger.info(f"Client left turn in {conversation.id}")
            channel.cancel()
            await turn

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "X-Conversation-Id": conversation.id,
        },
    )


@router.get("/conversations", response_model=list[ConversationInfo])
async def list_conversations(
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> list[ConversationInfo]:
    conversations = await agent.conversations.list_conversations(user_id)
    return [ConversationInfo.from_conversation(c) for c in conversations]


@router.post("/conversations", response_model=ConversationInfo, status_code=201)
async def create_conversation(
    body: CreateConversationRequest,
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> ConversationInfo:
    conversation = await agent.conversations.create_conversation(user_id, body.title)
    return ConversationInfo.from_conversation(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> ConversationDetail:
    """Get a conversation with its messages, oldest first."""
    try:
        conversation, messages = await agent.conversations.get_conversation(
            conversation_id, user_id
        )
    except ConversationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ConversationDetail(
        **ConversationInfo.from_conversation(conversation).model_dump(),
        messages=[MessageInfo.from_message(m) for m in messages],
    )


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> dict:
    try:
        await agent.conversations.delete_conversation(conversation_id, user_id)
    except ConversationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "deleted"}


@router.get("/pending", response_model=list[PendingActionInfo])
async def pending_actions(
    user_id: str = Depends(get_user_id),
    agent: OperatorAgent = Depends(get_agent),
) -> list[PendingActionInfo]:
    """Write actions awaiting the user's confirmation, oldest first."""
    return [PendingActionInfo.from_action(a) for a in agent.pending_actions(user_id)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    agent = app.dependency_overrides.get(get_agent, get_agent)()
    await agent.start()
    try:
        yield
    finally:
        await agent.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Operator Agent API",
        description="Chat with the operator agent to inspect and act on ad and checkout platforms",
        version="0.1.0",
        lifespan=lifespan,
    )

    # configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Conversation-Id"],
    )

    app.include_router(router)
    return app


app = create_app()
