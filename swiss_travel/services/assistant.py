"""
Chat orchestrator: one user message in, one reply out.

    Init → AwaitingLLM → (DispatchTool → AwaitingLLM)* → Done

The transcript lives only for the duration of the turn; there is no
cross-turn memory.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from swiss_travel.core.config import settings
from swiss_travel.core.errors import OrchestratorExhaustion
from swiss_travel.services.catalog import (
    activity_repository,
    destination_repository,
    hotel_repository,
)
from swiss_travel.services.embeddings import get_embedding_provider
from swiss_travel.services.llm import ChatCompletionClient, build_llm_client
from swiss_travel.services.tools import TravelTools
from swiss_travel.services.wishlist import wishlist_repository

logger = logging.getLogger(__name__)

MIN_ITERATIONS = 5
FALLBACK_REPLY = "Sorry, I couldn't complete that request."

SYSTEM_PROMPT = """You are a friendly and knowledgeable Swiss travel advisor assistant.

Your role is to help users discover amazing destinations, hotels, and activities in Switzerland.

IMPORTANT INSTRUCTIONS:
- ALWAYS use the available tools (searchDestinations, searchHotels, searchActivities, addToWishlist, getWishlist)
- When users ask about places to visit, use searchDestinations
- When users ask about accommodations, use searchHotels (you can filter by destination and price)
- When users ask about things to do, use searchActivities
- When users express interest in something, proactively add it to their wishlist using addToWishlist
- Present search results in a clear, friendly format with relevant details
- Use 1-2 relevant emojis to make responses warm and engaging
- Be proactive but don't overexplain what you're doing - just do it and show results
- Mention prices in CHF for hotels
- Include seasonal information for activities
- If results include IDs, remember them for follow-up questions

Examples of good responses:
- "Here are some amazing mountain destinations for you!"
- "I found these cozy hotels in your budget range!"
- "Added to your wishlist! You're going to love it there!"

Be helpful and enthusiastic."""


class TravelAssistant:
    def __init__(
        self,
        llm: ChatCompletionClient,
        tools: TravelTools,
        max_iterations: int = 8,
    ) -> None:
        self.llm = llm
        self.tools = tools
        self.max_iterations = max(MIN_ITERATIONS, max_iterations)

    async def run_turn(self, message: str) -> str:
        """Runs the loop; raises OrchestratorExhaustion when the cap is hit."""
        transcript: List[Dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": message},
        ]
        schemas = self.tools.schemas()
        last_text: Optional[str] = None

        for iteration in range(1, self.max_iterations + 1):
            reply = await self.llm.complete(transcript, schemas)

            if not reply.tool_calls:
                logger.info("Turn finished after %d LLM call(s)", iteration)
                return reply.content or last_text or FALLBACK_REPLY

            if reply.content:
                last_text = reply.content
            transcript.append(reply.as_message())

            # Results go back in the order the model asked for them
            for call in reply.tool_calls:
                result = await self.tools.dispatch(call.name, call.arguments)
                transcript.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "name": call.name,
                    "content": result,
                })

        raise OrchestratorExhaustion(self.max_iterations, last_text)

    async def chat(self, message: str) -> str:
        try:
            return await self.run_turn(message)
        except OrchestratorExhaustion as exc:
            logger.warning("%s; returning fallback reply", exc)
            return exc.last_text or FALLBACK_REPLY


# Sync dependencies run in FastAPI's threadpool; each singleton is built once
_tools: Optional[TravelTools] = None
_assistant: Optional[TravelAssistant] = None
_tools_lock = threading.Lock()
_assistant_lock = threading.Lock()


def get_travel_tools() -> TravelTools:
    global _tools
    if _tools is None:
        with _tools_lock:
            if _tools is None:
                _tools = TravelTools(
                    embeddings=get_embedding_provider(),
                    destinations=destination_repository,
                    hotels=hotel_repository,
                    activities=activity_repository,
                    wishlist=wishlist_repository,
                )
    return _tools


def get_assistant() -> TravelAssistant:
    global _assistant
    if _assistant is None:
        with _assistant_lock:
            if _assistant is None:
                _assistant = TravelAssistant(
                    llm=build_llm_client(),
                    tools=get_travel_tools(),
                    max_iterations=settings.CHAT_MAX_ITERATIONS,
                )
    return _assistant
