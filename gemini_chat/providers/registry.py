"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：在配置里使用的统一名称，例如 "chat"。
- provider_model：厂商实际提供的模型 ID，例如 "gemini-2.0-flash"。

上层只关心逻辑名，具体用哪个底层模型由这里集中配置，便于后续升级或切换。"""

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    models={
        "chat": ModelConfig(logical_name="chat", provider_model="gemini-2.0-flash"),
        "chat-lite": ModelConfig(logical_name="chat-lite", provider_model="gemini-2.0-flash-lite"),
        "chat-pro": ModelConfig(logical_name="chat-pro", provider_model="gemini-2.5-pro"),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def resolve_endpoint(base_url: str, model: str) -> str:
    """拼出 generateContent 端点；未登记的模型名按厂商模型 ID 原样使用。"""

    model_cfg = GEMINI_CONFIG.models.get(model)
    provider_model = model_cfg.provider_model if model_cfg else model
    return f"{base_url.rstrip('/')}/models/{provider_model}:generateContent"
