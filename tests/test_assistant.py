import json

import pytest

from swiss_travel.core.errors import LLMError, OrchestratorExhaustion
from swiss_travel.services.assistant import (
    FALLBACK_REPLY,
    SYSTEM_PROMPT,
    TravelAssistant,
)
from swiss_travel.services.llm import LLMReply

from conftest import ScriptedLLM, tool_reply


async def test_plain_answer_ends_the_turn(tools):
    llm = ScriptedLLM([LLMReply(content="Grüezi! 🇨🇭")])

    reply = await TravelAssistant(llm, tools).chat("hello")

    assert reply == "Grüezi! 🇨🇭"
    assert len(llm.transcripts) == 1
    assert llm.transcripts[0] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "hello"},
    ]
    assert [s["function"]["name"] for s in llm.tool_schemas][0] == "searchDestinations"


async def test_tool_result_is_bound_to_call_id(tools):
    llm = ScriptedLLM([
        tool_reply(("searchDestinations", '{"query": "mountain views"}')),
        LLMReply(content="Zermatt is perfect for you ⛰️"),
    ])

    reply = await TravelAssistant(llm, tools).chat("mountain views")

    assert reply == "Zermatt is perfect for you ⛰️"
    second = llm.transcripts[1]
    assert second[2]["role"] == "assistant"
    assert second[2]["tool_calls"][0]["id"] == "call_0"
    assert second[3]["role"] == "tool"
    assert second[3]["tool_call_id"] == "call_0"
    assert second[3]["content"].startswith("Found destinations:\n- Zermatt (ID:1, Valais):")


async def test_tool_calls_are_dispatched_in_order(tools, wishlist):
    llm = ScriptedLLM([
        tool_reply(
            ("addToWishlist", '{"itemType": "destination", "itemId": 2}'),
            ("addToWishlist", '{"itemType": "destination", "itemId": 1}'),
            ("getWishlist", "{}"),
        ),
        LLMReply(content="Saved both!"),
    ])

    await TravelAssistant(llm, tools).chat("save Geneva and Zermatt")

    results = [m for m in llm.transcripts[1] if m["role"] == "tool"]
    assert [m["tool_call_id"] for m in results] == ["call_0", "call_1", "call_2"]
    assert results[0]["content"] == "Added to wishlist: Geneva"
    assert results[1]["content"] == "Added to wishlist: Zermatt"
    assert results[2]["content"] == "Your wishlist:\n- Geneva (Lake Geneva)\n- Zermatt (Valais)\n"
    assert [i.item_id for i in wishlist.items] == [2, 1]


async def test_bad_tool_call_is_reported_back_to_the_model(tools):
    llm = ScriptedLLM([
        tool_reply(("bookTrain", "{}"), ("searchHotels", '{"maxPrice": 100}')),
        LLMReply(content="Let me try again."),
    ])

    await TravelAssistant(llm, tools).chat("train?")

    results = [m["content"] for m in llm.transcripts[1] if m["role"] == "tool"]
    assert results[0] == "Error: unknown tool 'bookTrain'"
    assert results[1].startswith("Error: invalid arguments for searchHotels: query")


async def test_hotel_scenario_filters_by_destination_and_price(tools, hotels):
    llm = ScriptedLLM([
        tool_reply(("searchHotels", json.dumps(
            {"query": "cozy hotel", "destinationId": 1, "maxPrice": 300.0}
        ))),
        LLMReply(content="Chalet Edelweiss, CHF 250/night 🏔️"),
    ])

    await TravelAssistant(llm, tools).chat("hotel in Zermatt under 300 CHF")

    result = llm.transcripts[1][-1]["content"]
    assert "Chalet Edelweiss" in result
    assert "Grand Matterhorn Palace" not in result


async def test_endless_tool_calls_hit_the_cap(tools):
    llm = ScriptedLLM(repeat=tool_reply(("searchDestinations", '{"query": "x"}')))

    reply = await TravelAssistant(llm, tools, max_iterations=6).chat("loop forever")

    assert reply == FALLBACK_REPLY
    assert len(llm.transcripts) == 6


async def test_cap_returns_last_assistant_text_when_there_is_one(tools):
    llm = ScriptedLLM(repeat=tool_reply(("getWishlist", "{}"), content="Checking your wishlist…"))

    reply = await TravelAssistant(llm, tools).chat("what did I save?")

    assert reply == "Checking your wishlist…"


async def test_run_turn_raises_exhaustion(tools):
    llm = ScriptedLLM(repeat=tool_reply(("getWishlist", "{}")))

    with pytest.raises(OrchestratorExhaustion) as exc_info:
        await TravelAssistant(llm, tools, max_iterations=5).run_turn("?")

    assert exc_info.value.iterations == 5


def test_cap_never_drops_below_five(tools):
    assert TravelAssistant(ScriptedLLM(), tools, max_iterations=1).max_iterations == 5


async def test_empty_final_answer_falls_back(tools):
    llm = ScriptedLLM([LLMReply(content=None)])
    assert await TravelAssistant(llm, tools).chat("...") == FALLBACK_REPLY


async def test_llm_errors_propagate(tools):
    class DownLLM:
        async def complete(self, messages, tools):
            raise LLMError("connection refused")

    with pytest.raises(LLMError):
        await TravelAssistant(DownLLM(), tools).chat("hi")
