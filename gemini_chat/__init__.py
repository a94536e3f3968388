"""Gemini Chat 顶层包。

该包提供聊天界面背后的核心实现，
包括配置加载、消息模型、会话存储、Gemini 端点调用
以及把两者串起来的会话编排与简化 API。
"""

from gemini_chat.agents.chat_session import ChatSession, SessionConfig
from gemini_chat.api.service import run_chat
from gemini_chat.infrastructure.storage.memory_store import MemoryConversationStore
from gemini_chat.providers.gemini_client import GeminiClient

__all__ = ["ChatSession", "SessionConfig", "GeminiClient", "MemoryConversationStore", "run_chat"]
