"""Demo chat endpoint for visitors who have not signed up yet."""

from fastapi import APIRouter

from app.core.demo import DemoTurn, generate_demo_reply
from app.deps import LLM, OptionalUser
from app.schemas.demo import DemoChatRequest, DemoChatResponse

router = APIRouter()


@router.post("/chat", response_model=DemoChatResponse)
async def demo_chat(
    data: DemoChatRequest,
    user: OptionalUser,
    llm: LLM,
) -> DemoChatResponse:
    reply = await generate_demo_reply(
        llm,
        data.message.strip(),
        [DemoTurn(content=t.content, is_from_user=t.is_from_user) for t in data.history],
    )
    return DemoChatResponse(content=reply.content, fallback=reply.fallback)
