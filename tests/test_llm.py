from unittest.mock import MagicMock

import pytest
import requests
from careerkit.llm import Completion, LLMClient


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        http_response = requests.Response()
        http_response.status_code = status_code
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=http_response)
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session, monkeypatch):
    monkeypatch.setattr('careerkit.llm.time.sleep', lambda seconds: None)
    return LLMClient(api_key='sk-or-test', model='test/model', session=session, retry_delay=0)


def test_unconfigured_client_refuses_to_call(session):
    client = LLMClient(api_key='', session=session)

    assert not client.is_configured()
    with pytest.raises(RuntimeError):
        client.complete([{"role": "user", "content": "hi"}])
    session.post.assert_not_called()


def test_key_must_be_an_openrouter_key():
    assert not LLMClient(api_key='sk-proj-123').is_configured()
    assert LLMClient(api_key='sk-or-v1-abc').is_configured()


def test_successful_completion(client, session):
    session.post.return_value = make_response(payload={
        "choices": [{"message": {"content": '{"ok": true}'}}],
        "usage": {"total_tokens": 321},
    })

    completion = client.complete([{"role": "user", "content": "hi"}], feature='test')

    assert isinstance(completion, Completion)
    assert completion.content == '{"ok": true}'
    assert completion.tokens_used == 321
    assert completion.model == 'test/model'

    args, kwargs = session.post.call_args
    assert args[0] == 'https://openrouter.ai/api/v1/chat/completions'
    assert kwargs['headers']['Authorization'] == 'Bearer sk-or-test'
    assert kwargs['json']['model'] == 'test/model'


def test_empty_completion_is_an_error(client, session):
    session.post.return_value = make_response(payload={"choices": [{"message": {"content": ""}}]})
    with pytest.raises(RuntimeError):
        client.complete([{"role": "user", "content": "hi"}])


def test_timeouts_are_retried_then_mapped(client, session):
    session.post.side_effect = requests.exceptions.Timeout("slow")

    with pytest.raises(TimeoutError):
        client.complete([{"role": "user", "content": "hi"}])
    assert session.post.call_count == 3


def test_server_error_recovers_on_retry(client, session):
    session.post.side_effect = [
        make_response(status_code=503),
        make_response(payload={"choices": [{"message": {"content": "fine"}}]}),
    ]

    completion = client.complete([{"role": "user", "content": "hi"}])
    assert completion.content == "fine"
    assert completion.tokens_used == 0
    assert session.post.call_count == 2


def test_invalid_key_is_not_retried(client, session):
    session.post.return_value = make_response(status_code=401)

    with pytest.raises(ValueError):
        client.complete([{"role": "user", "content": "hi"}])
    assert session.post.call_count == 1


def test_rate_limit_maps_to_runtime_error(client, session):
    session.post.return_value = make_response(status_code=429)

    with pytest.raises(RuntimeError, match="rate limit"):
        client.complete([{"role": "user", "content": "hi"}])
    assert session.post.call_count == 3


def test_handle_api_error_mapping(client):
    assert isinstance(client.handle_api_error(requests.exceptions.Timeout()), TimeoutError)
    assert isinstance(client.handle_api_error(requests.exceptions.ConnectionError("down")), RuntimeError)


@pytest.mark.parametrize("payload", [
    ["unexpected"],
    "just a string",
    {"choices": ["not an object"]},
    {"choices": [{"message": "flat text"}]},
])
def test_malformed_body_is_a_runtime_error(client, session, payload):
    response = make_response()
    response.json.return_value = payload
    session.post.return_value = response

    with pytest.raises(RuntimeError, match="Malformed response|empty completion"):
        client.complete([{"role": "user", "content": "hi"}])
    assert session.post.call_count == 1
