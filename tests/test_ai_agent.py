from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APIStatusError

from models.ai_models import PageContext, PageIntent
from models.session_models import ChatMessage
from services.openai.ai_agent import AIAgent, is_transient_error, limit_history
from utils.errors import AIAgentError

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/responses")


def status_error(code):
    return APIStatusError("failure", response=httpx.Response(code, request=REQUEST), body=None)


def fake_response(text="Fresh copy", input_tokens=100, output_tokens=50):
    part = MagicMock(type="output_text", text=text)
    item = MagicMock(type="message", content=[part])
    usage = MagicMock(input_tokens=input_tokens, output_tokens=output_tokens)
    return MagicMock(output=[item], usage=usage, output_text=text)


def make_agent(create, model="gpt-5", **kwargs):
    client = MagicMock()
    client.responses.create = create
    sleep = AsyncMock()
    agent = AIAgent(client, model=model, sleep=sleep, **kwargs)
    return agent, sleep


def context():
    return PageContext(
        business_name="Harbor Bakery",
        industry="Bakery",
        business_description="Fresh bread and pastries",
        page_title="About",
        intent=PageIntent(primary_goal="Build trust", target_audience="Locals", calls_to_action=["Visit"]),
    )


def conversation(count):
    roles = ("user", "assistant")
    return [ChatMessage(role=roles[i % 2], content=f"message {i}") for i in range(count)]


def test_limit_history_keeps_short_history():
    history = conversation(5)
    assert limit_history(history, 20) == history


def test_limit_history_keeps_first_user_message_when_trimming():
    history = conversation(30)
    trimmed = limit_history(history, 20)
    assert len(trimmed) == 20
    assert trimmed[0] is history[0]
    assert trimmed[-1] is history[-1]
    assert trimmed[1] is history[11]


def test_transient_error_classification():
    assert is_transient_error(APIConnectionError(request=REQUEST))
    for code in (429, 500, 502, 503, 504):
        assert is_transient_error(status_error(code))
    assert not is_transient_error(status_error(400))
    assert not is_transient_error(ValueError("nope"))


def test_agent_requires_client():
    with pytest.raises(ValueError):
        AIAgent(None)


@pytest.mark.asyncio
async def test_generate_reply_returns_text_and_total_tokens():
    create = AsyncMock(return_value=fake_response("About us copy", 120, 80))
    agent, _ = make_agent(create)

    reply = await agent.generate_reply(conversation(2), "Write the intro", context())

    assert reply.content == "About us copy"
    assert reply.tokens_used == 200
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "gpt-5"
    assert "Harbor Bakery" in kwargs["instructions"]
    assert "Build trust" in kwargs["instructions"]
    assert kwargs["input"][-1] == {"role": "user", "content": "Write the intro"}
    assert len(kwargs["input"]) == 3
    assert "temperature" not in kwargs


@pytest.mark.asyncio
async def test_temperature_is_sent_for_models_that_accept_it():
    create = AsyncMock(return_value=fake_response())
    agent, _ = make_agent(create, model="gpt-4.1", temperature=0.4)

    await agent.generate_reply([], "hi", context())

    assert create.await_args.kwargs["temperature"] == 0.4


@pytest.mark.asyncio
async def test_transient_failures_are_retried_with_backoff():
    create = AsyncMock(side_effect=[status_error(503), APIConnectionError(request=REQUEST), fake_response("ok")])
    agent, sleep = make_agent(create)

    reply = await agent.generate_reply([], "hi", context())

    assert reply.content == "ok"
    assert create.await_count == 3
    assert [call.args[0] for call in sleep.await_args_list] == [2, 4]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    create = AsyncMock(side_effect=status_error(429))
    agent, sleep = make_agent(create)

    with pytest.raises(AIAgentError) as excinfo:
        await agent.generate_reply([], "hi", context())

    assert create.await_count == 3
    assert sleep.await_count == 2
    assert isinstance(excinfo.value.original_error, APIStatusError)


@pytest.mark.asyncio
async def test_non_transient_errors_fail_fast():
    create = AsyncMock(side_effect=status_error(400))
    agent, sleep = make_agent(create)

    with pytest.raises(AIAgentError):
        await agent.generate_reply([], "hi", context())

    assert create.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_reply_is_an_error():
    agent, _ = make_agent(AsyncMock(return_value=fake_response("")))
    with pytest.raises(AIAgentError):
        await agent.generate_reply([], "hi", context())
