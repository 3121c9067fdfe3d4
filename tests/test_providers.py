import json

import httpx
import pytest

from aic.constants import DEFAULT_USER_PROMPT, PING_PROMPT
from aic.errors import (
    BadResponseError,
    MissingKeyError,
    NetworkError,
    UnauthorizedError,
)
from aic.providers import CompletionClient
from aic.schemas import Configuration

SAMPLE_DIFF = "diff --git a/a.txt b/a.txt\n+new line\n"


def completion_body(content="feat: add line", choices=None):
    if choices is None:
        choices = [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ]
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": choices,
    }


def respond(status, **kwargs):
    """Handler that answers every request with the same canned response."""
    return lambda request: httpx.Response(status, **kwargs)


def make_client(handler, **overrides):
    """Builds a CompletionClient whose HTTP traffic goes to `handler`."""
    values = {
        "api_token": "sk-test-token",
        "api_base_url": "https://api.example.com/v1",
        "model": "gpt-4o-mini",
        "system_prompt": "You write commit messages.",
        "user_prompt": DEFAULT_USER_PROMPT,
    }
    values.update(overrides)
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return CompletionClient(Configuration(**values), http_client=http_client)


# --- Success path ---


def test_generate_returns_trimmed_message():
    client = make_client(respond(200, json=completion_body("  feat: add line\n")))

    assert client.generate(SAMPLE_DIFF) == "feat: add line"


def test_request_shape():
    """Bearer auth, the chat/completions path and a body carrying the diff."""
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=completion_body())

    make_client(handler).generate(SAMPLE_DIFF)

    request = seen["request"]
    body = json.loads(request.content)
    assert request.method == "POST"
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test-token"
    assert body["model"] == "gpt-4o-mini"
    assert body["messages"][0] == {
        "role": "system",
        "content": "You write commit messages.",
    }
    assert body["messages"][1]["role"] == "user"
    assert SAMPLE_DIFF in body["messages"][1]["content"]


def test_trailing_slash_in_base_url():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        return httpx.Response(200, json=completion_body())

    client = make_client(handler, api_base_url="http://localhost:11434/v1/")
    client.generate(SAMPLE_DIFF)

    assert seen["path"] == "/v1/chat/completions"


def test_empty_system_prompt_is_omitted():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_body())

    make_client(handler, system_prompt="").generate(SAMPLE_DIFF)

    assert [m["role"] for m in seen["body"]["messages"]] == ["user"]


def test_ping_sends_minimal_prompt():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_body("pong"))

    reply = make_client(handler).ping()

    assert reply == "pong"
    assert seen["body"]["messages"] == [{"role": "user", "content": PING_PROMPT}]


# --- Failure mapping ---


def test_missing_token_raises_before_any_request():
    with pytest.raises(MissingKeyError, match="aic config set api_token"):
        CompletionClient(Configuration(api_token=None))


def test_unauthorized():
    client = make_client(respond(401, json={"error": {"message": "Invalid API key"}}))

    with pytest.raises(UnauthorizedError):
        client.generate(SAMPLE_DIFF)


def test_server_error_is_bad_response():
    client = make_client(respond(500, json={"error": {"message": "overloaded"}}))

    with pytest.raises(BadResponseError, match="500"):
        client.generate(SAMPLE_DIFF)


def test_empty_choices():
    client = make_client(respond(200, json=completion_body(choices=[])))

    with pytest.raises(BadResponseError, match="choice list is empty"):
        client.generate(SAMPLE_DIFF)


@pytest.mark.parametrize(
    "body",
    [
        {"choices": 5},
        {"choices": {"a": 1}},
        {"choices": True},
        {"choices": None},
        {"id": "chatcmpl-test"},
    ],
)
def test_malformed_choices(body):
    client = make_client(respond(200, json=body))

    with pytest.raises(BadResponseError, match="Unexpected API response"):
        client.generate(SAMPLE_DIFF)


def test_choice_without_message():
    client = make_client(respond(200, json=completion_body(choices=[{"index": 0}])))

    with pytest.raises(BadResponseError, match="no message content"):
        client.generate(SAMPLE_DIFF)


def test_non_json_body():
    client = make_client(respond(200, text="<html>gateway says hi</html>"))

    with pytest.raises(BadResponseError):
        client.generate(SAMPLE_DIFF)


def test_blank_message_content():
    client = make_client(respond(200, json=completion_body("   \n")))

    with pytest.raises(BadResponseError, match="empty commit message"):
        client.generate(SAMPLE_DIFF)


def test_connection_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError, match="api.example.com"):
        make_client(handler).generate(SAMPLE_DIFF)
