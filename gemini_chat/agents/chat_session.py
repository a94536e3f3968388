"""聊天会话编排模块。

把一次用户输入串成完整的一轮对话：
写入用户消息 -> 调用 CompletionClient -> 写入助手回复（失败时写入致歉消息）。
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import uuid4

from gemini_chat.config.settings import DEFAULT_APOLOGY_TEXT, settings
from gemini_chat.domain.conversation import ConversationStore
from gemini_chat.domain.models import CompletionFailure, CompletionResult, Message, new_message
from gemini_chat.infrastructure.logging.logger import logger
from gemini_chat.providers.base import CompletionClient


@dataclass
class SessionConfig:
    apology_text: str = DEFAULT_APOLOGY_TEXT
    send_delay: float = 0.0  # 发送前等待的秒数

    @classmethod
    def from_settings(cls, cfg=settings) -> "SessionConfig":
        return cls(
            apology_text=cfg.apology_text,
            send_delay=cfg.send_delay,
        )


@dataclass
class ChatTurn:
    """一轮对话的产物：本轮写入的用户消息、助手消息以及调用结果。"""

    user_message: Message
    reply: Message
    result: CompletionResult


class ChatSession:
    def __init__(
        self,
        store: ConversationStore,
        client: CompletionClient,
        config: Optional[SessionConfig] = None,
    ):
        self._store = store
        self._client = client
        self._config = config or SessionConfig()
        self._in_flight = 0
        self.last_error: Optional[str] = None

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def is_loading(self) -> bool:
        """是否仍有请求未返回；允许多轮对话同时进行。"""
        return self._in_flight > 0

    async def send_message(self, text: str) -> Optional[CompletionResult]:
        """执行一轮对话，返回本轮的 CompletionResult；输入为空时返回 None。"""
        turn = await self.send_turn(text)
        return turn.result if turn else None

    async def send_turn(self, text: str) -> Optional[ChatTurn]:
        """执行一轮对话。

        Args:
            text: 用户输入，原样发送；去掉首尾空白后为空则直接忽略。

        Returns:
            本轮的 ChatTurn；输入为空时返回 None 且不修改会话。
        """
        if not text.strip():
            return None

        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "provider": getattr(self._client, "name", "unknown"),
        }

        user_msg = new_message("user", text, trace_id=log_ctx["trace_id"])
        self._store.append(user_msg)
        self._log(logging.INFO, "Stored user message", log_ctx, message_id=user_msg.id)

        # 只有在没有其他进行中的轮次时才清掉上一次的错误
        if self._in_flight == 0:
            self.last_error = None
        self._in_flight += 1
        try:
            if self._config.send_delay > 0:
                await asyncio.sleep(self._config.send_delay)
            self._log(logging.INFO, "Calling provider", log_ctx, prompt_chars=len(text))
            result = await self._client.send(text)
        finally:
            self._in_flight -= 1

        if isinstance(result, CompletionFailure):
            self.last_error = result.message
            reply = new_message("assistant", self._config.apology_text, trace_id=log_ctx["trace_id"], error=result.kind)
            self._log(
                logging.WARNING,
                "Provider call failed",
                log_ctx,
                kind=result.kind,
                error=result.message,
                http_status=result.http_status,
                retryable=result.retryable,
            )
        else:
            reply = new_message("assistant", result.text, trace_id=log_ctx["trace_id"])
        self._store.append(reply)

        self._log(
            logging.INFO,
            "Completed chat turn",
            log_ctx,
            ok=result.ok,
            elapsed_seconds=round(time.time() - start_time, 2),
            user_message_id=user_msg.id,
            assistant_message_id=reply.id,
        )
        return ChatTurn(user_message=user_msg, reply=reply, result=result)

    def clear(self) -> None:
        """清空会话，只保留一条新的欢迎消息。"""
        self._store.reset()
        self.last_error = None
        self._log(logging.INFO, "Cleared conversation", {})

    def delete_message(self, message_id: str) -> None:
        self._store.remove(message_id)

    def messages(self) -> List[Message]:
        return self._store.list_messages()

    def dismiss_error(self) -> None:
        self.last_error = None

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
