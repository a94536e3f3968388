"""Provider 抽象接口。

会话层不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 每个厂商实现一个 CompletionClient（如 GeminiClient）。
- 负责：把用户输入转成具体 API 请求，并把响应 JSON 解析为 CompletionResult。
"""

from typing import Protocol

from gemini_chat.domain.models import CompletionResult


class CompletionClient(Protocol):
    """补全客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - send(prompt): 发起一次请求，成功或失败都以 CompletionResult 返回，不抛出分类内的错误。
    """

    name: str

    async def send(self, prompt: str) -> CompletionResult:
        ...
