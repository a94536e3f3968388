import pytest

from gemini_chat.api import service
from gemini_chat.domain.models import CompletionFailure, CompletionSuccess


class FakeClient:
    name = "fake"

    def __init__(self, result):
        self.result = result

    async def send(self, prompt):
        return self.result


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient(CompletionSuccess(text="Hi there!"))
    monkeypatch.setattr(service, "create_client", lambda: client)
    service.reset_default_session()
    yield client
    service.reset_default_session()


def test_run_chat_success(fake_client):
    out = service.run_chat("Hello")
    assert out["ok"] is True
    assert out["error"] is None
    assert out["user_message"]["author"] == "user"
    assert out["user_message"]["text"] == "Hello"
    assert out["assistant_message"]["text"] == "Hi there!"
    assert [m["author"] for m in service.list_messages()] == ["assistant", "user", "assistant"]


def test_run_chat_failure(fake_client):
    fake_client.result = CompletionFailure(kind="parse_error", message="Failed to parse response")
    out = service.run_chat("Hello")
    assert out["ok"] is False
    assert out["error"] == "Failed to parse response"
    assert out["error_kind"] == "parse_error"
    assert out["assistant_message"]["author"] == "assistant"


def test_run_chat_blank(fake_client):
    out = service.run_chat("  ")
    assert out["user_message"] is None
    assert out["error_kind"] is None
    assert len(service.list_messages()) == 1
    # 两个分支返回相同的键
    assert set(out) == set(service.run_chat("Hello"))
    assert isinstance(service.list_messages()[-1]["meta"], dict)


def test_delete_and_clear(fake_client):
    service.run_chat("Hello")
    user_id = service.list_messages()[1]["id"]
    service.delete_message(user_id)
    assert user_id not in {m["id"] for m in service.list_messages()}
    service.clear_conversation()
    assert len(service.list_messages()) == 1
