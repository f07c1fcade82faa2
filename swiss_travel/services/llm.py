"""
Chat-completion client for any OpenAI-compatible endpoint
(Ollama /v1, OpenAI, vLLM, LM Studio ...).

Only the non-streaming "chat completion with tools" call is needed:
POST {LLM_ENDPOINT}/chat/completions → either an assistant message or a
list of tool calls, each with a correlation id.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from swiss_travel.core.config import settings
from swiss_travel.core.errors import LLMError

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    id: str
    name: str
    # Raw JSON text, validated later by the tool registry
    arguments: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class LLMReply:
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)

    def as_message(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [c.as_dict() for c in self.tool_calls]
        return message


def _parse_reply(data: Dict[str, Any]) -> LLMReply:
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError(f"Malformed chat completion: {exc!r}") from exc
    if not isinstance(message, dict):
        raise LLMError(f"Malformed chat completion: message is {type(message).__name__}")

    raw_calls = message.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raise LLMError("Malformed chat completion: tool_calls is not a list")

    calls: List[ToolCall] = []
    for i, raw in enumerate(raw_calls):
        fn = raw.get("function") if isinstance(raw, dict) else None
        if not isinstance(fn, dict):
            raise LLMError(f"Tool call #{i} has no function object")
        name = fn.get("name")
        if not name:
            raise LLMError(f"Tool call #{i} has no function name")
        arguments = fn.get("arguments")
        if arguments is None:
            arguments = "{}"
        elif not isinstance(arguments, str):
            # Some servers send the arguments object instead of its JSON text
            arguments = json.dumps(arguments)
        calls.append(ToolCall(id=raw.get("id") or f"call_{i}", name=name, arguments=arguments))

    return LLMReply(content=message.get("content"), tool_calls=calls)


class ChatCompletionClient:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = endpoint.rstrip("/") + "/chat/completions"
        self._model = model
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._timeout = timeout
        self._transport = transport

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> LLMReply:
        payload: Dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "stream": False,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=payload, headers=self._headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error("LLM returned %d: %s", exc.response.status_code, exc.response.text[:300])
            raise LLMError(f"LLM endpoint returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("LLM request failed: %s", exc)
            raise LLMError(f"LLM request failed: {exc}") from exc
        except ValueError as exc:
            raise LLMError("LLM endpoint returned non-JSON body") from exc

        reply = _parse_reply(data)
        logger.debug(
            "LLM reply: %d tool call(s), content=%r",
            len(reply.tool_calls), (reply.content or "")[:120],
        )
        return reply


def build_llm_client() -> ChatCompletionClient:
    return ChatCompletionClient(
        endpoint=settings.LLM_ENDPOINT,
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )
