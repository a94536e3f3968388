"""对外 API 服务模块。

提供简化的函数接口供上层应用（界面层、脚本）调用。
"""

import asyncio
from typing import Any, Dict, Optional

from gemini_chat.agents.chat_session import ChatSession, SessionConfig
from gemini_chat.config.settings import settings
from gemini_chat.domain.models import CompletionFailure, Message
from gemini_chat.infrastructure.logging.logger import logger
from gemini_chat.infrastructure.storage.memory_store import MemoryConversationStore
from gemini_chat.providers import create_client


_session: Optional[ChatSession] = None


def get_default_session() -> ChatSession:
    """获取默认的聊天会话实例（单例）。"""
    global _session
    if _session is None:
        _session = ChatSession(
            store=MemoryConversationStore(welcome_text=settings.welcome_text),
            client=create_client(),
            config=SessionConfig.from_settings(settings),
        )
    return _session


def reset_default_session() -> None:
    """丢弃默认会话，下次调用时按当前配置重新创建。"""
    global _session
    _session = None


def run_chat(user_input: str) -> Dict[str, Any]:
    """运行一轮聊天对话。

    Args:
        user_input: 用户输入内容

    Returns:
        包含 ok、error、error_kind、用户消息与助手消息的字典；
        输入为空时 ok 为 False，其余字段均为 None。
    """
    try:
        session = get_default_session()
        turn = asyncio.run(session.send_turn(user_input))
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {"error": str(e)}})
        raise

    if turn is None:
        return {"ok": False, "error": None, "error_kind": None, "user_message": None, "assistant_message": None}

    failure = turn.result if isinstance(turn.result, CompletionFailure) else None
    return {
        "ok": turn.result.ok,
        "error": failure.message if failure else None,
        "error_kind": failure.kind if failure else None,
        "user_message": _to_dict(turn.user_message),
        "assistant_message": _to_dict(turn.reply),
    }


def list_messages() -> list[Dict[str, Any]]:
    """获取当前会话的所有消息（按展示顺序）。"""
    return [_to_dict(m) for m in get_default_session().messages()]


def clear_conversation() -> None:
    get_default_session().clear()


def delete_message(message_id: str) -> None:
    get_default_session().delete_message(message_id)


def _to_dict(m: Message) -> Dict[str, Any]:
    return {
        "id": m.id,
        "author": m.author,
        "text": m.text,
        "created_at": m.created_at.isoformat(),
        "meta": dict(m.meta),
    }
