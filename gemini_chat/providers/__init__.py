"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (gemini_client)。
"""

from typing import Optional

from gemini_chat.config.settings import settings
from gemini_chat.domain.exceptions import ValidationError
from gemini_chat.providers.base import CompletionClient
from gemini_chat.providers.gemini_client import GeminiClient
from gemini_chat.providers.registry import get_provider_config


def create_client(name: Optional[str] = None) -> CompletionClient:
    """根据名称创建 Provider 客户端，默认取配置中的 provider。"""

    provider_name = name or getattr(settings, "default_provider", "gemini")
    try:
        cfg = get_provider_config(provider_name)
    except KeyError as e:
        raise ValidationError(code="UNKNOWN_PROVIDER", message=str(e))
    if cfg.name == "gemini":
        return GeminiClient(settings)
    raise ValidationError(code="UNKNOWN_PROVIDER", message=f"No client for provider {cfg.name!r}")
