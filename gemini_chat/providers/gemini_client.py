"""Gemini Provider 适配器。

本模块负责：

1. 接收用户输入，构造 generateContent 请求体。
2. 调用 HTTP 接口并把网络/配置/响应问题归类为业务异常。
3. 将响应 JSON 解析为 CompletionSuccess（只取首个候选的首个 part）。
4. 在 send() 边界把业务异常统一转换为 CompletionFailure 返回。

接口约定：
- URL: {base_url}/models/{model}:generateContent（或直接配置完整端点）
- 认证: X-goog-api-key: <api_key>

每次调用只发一个请求，不重试、不取消；客户端本身不写日志。
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from gemini_chat.config.settings import settings
from gemini_chat.domain.exceptions import (
    BusinessError,
    ConfigurationError,
    EmptyResponseError,
    NetworkError,
    ResponseParseError,
)
from gemini_chat.domain.models import (
    CompletionFailure,
    CompletionRequest,
    CompletionResult,
    CompletionSuccess,
)
from gemini_chat.providers.registry import GEMINI_CONFIG, resolve_endpoint


PARSE_ERROR_MESSAGE = "Failed to parse response"
RAW_BODY_LIMIT = 2000


# ---- 响应 envelope（只声明用到的字段，其余字段忽略） ----

class _Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: List[_Part] = Field(default_factory=list)


class _Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Optional[_Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class _PromptFeedback(BaseModel):
    model_config = ConfigDict(extra="ignore")

    block_reason: Optional[str] = Field(default=None, alias="blockReason")


class GenerateContentResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    candidates: List[_Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[_PromptFeedback] = Field(default=None, alias="promptFeedback")


class _ApiErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: Optional[int] = None
    message: Optional[str] = None
    status: Optional[str] = None


class _ApiErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: _ApiErrorBody


class GeminiClient:
    """Gemini 客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - send: 对外统一调用入口，返回 CompletionResult，不抛出分类内的错误。
    - generate: 同样的调用，但以异常形式报告失败。
    """

    name = "gemini"

    def __init__(self, cfg=settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Settings 里包含 api_key、端点、超时等配置；transport 用于替换底层传输（测试）
        self._settings = cfg
        self._transport = transport

    async def send(self, prompt: str) -> CompletionResult:
        """执行一次补全调用，失败以 CompletionFailure 数据返回。"""

        try:
            return await self.generate(CompletionRequest(prompt=prompt))
        except BusinessError as err:
            return CompletionFailure.from_error(err)

    async def generate(self, req: CompletionRequest) -> CompletionSuccess:
        """执行一次补全调用。

        步骤：
        1. 校验 API key 与端点，未配置时不发请求直接报错。
        2. 构造请求体并 POST。
        3. 网络错误包装为 NetworkError。
        4. 解析响应：空响应 -> EmptyResponseError，结构不符 -> ResponseParseError。
        """

        api_key = self._api_key()
        url = self._endpoint()
        payload = self.build_payload(req)
        client_kwargs: Dict[str, Any] = {"trust_env": False, "transport": self._transport}
        timeout = getattr(self._settings, "http_timeout", None)
        if timeout:
            client_kwargs["timeout"] = timeout
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "X-goog-api-key": api_key,
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒、超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        return self._parse_response(resp)

    @staticmethod
    def build_payload(req: CompletionRequest) -> dict:
        """将请求转成 generateContent 所需的 JSON，prompt 原样放入，不做裁剪。"""

        return {"contents": [{"parts": [{"text": req.prompt}]}]}

    # ---- 辅助方法 ----

    def _api_key(self) -> str:
        key = getattr(self._settings, "gemini_api_key", None)
        if not key or not key.strip():
            # 配置缺失走 ConfigurationError，不发起网络请求
            raise ConfigurationError(code="MISSING_API_KEY", message="GEMINI_API_KEY not set")
        placeholders = getattr(self._settings, "gemini_placeholder_keys", None) or []
        if key.strip() in placeholders:
            raise ConfigurationError(
                code="PLACEHOLDER_API_KEY",
                message="GEMINI_API_KEY is still a placeholder value",
            )
        # 请求头只能承载可打印 ASCII，否则 httpx 在构造请求时就会抛错
        if not key.isascii() or not key.isprintable():
            raise ConfigurationError(
                code="INVALID_API_KEY",
                message="GEMINI_API_KEY contains non-ASCII or control characters",
            )
        return key

    def _endpoint(self) -> str:
        url = getattr(self._settings, "gemini_endpoint_url", None)
        if not url:
            base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url
            model = getattr(self._settings, "default_model", None) or "chat"
            url = resolve_endpoint(base, model)
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise ConfigurationError(code="INVALID_ENDPOINT", message=f"Invalid endpoint URL: {e}")
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ConfigurationError(code="INVALID_ENDPOINT", message=f"Invalid endpoint URL: {url!r}")
        return url

    def _parse_response(self, resp: httpx.Response) -> CompletionSuccess:
        """将原始响应解析为 CompletionSuccess。

        HTTP 状态码不单独分类：非 2xx 的错误体同样按 envelope 解析，
        解析不到文本时归为 ResponseParseError，并尽量带上服务端给出的错误信息。
        """

        body = resp.content
        if not body:
            raise EmptyResponseError(
                code="NO_DATA",
                message="No data received",
                status_code=resp.status_code,
            )
        raw_body = body.decode("utf-8", errors="replace")[:RAW_BODY_LIMIT]
        try:
            envelope = GenerateContentResponse.model_validate_json(body)
        except PydanticValidationError:
            raise ResponseParseError(
                code="PARSE_ERROR",
                message=PARSE_ERROR_MESSAGE,
                status_code=resp.status_code,
                raw_body=raw_body,
            )

        text, finish_reason = self._first_text(envelope)
        if text is None:
            raise ResponseParseError(
                code="PARSE_ERROR",
                message=self._describe_unusable(body, envelope),
                status_code=resp.status_code,
                raw_body=raw_body,
            )
        return CompletionSuccess(text=text, finish_reason=finish_reason, raw=resp.json())

    @staticmethod
    def _first_text(envelope: GenerateContentResponse) -> Tuple[Optional[str], Optional[str]]:
        """取 candidates[0].content.parts[0].text，其余候选与 part 一律丢弃。"""

        if not envelope.candidates:
            return None, None
        first = envelope.candidates[0]
        if first.content is None or not first.content.parts:
            return None, first.finish_reason
        return first.content.parts[0].text, first.finish_reason

    @staticmethod
    def _describe_unusable(body: bytes, envelope: GenerateContentResponse) -> str:
        """为结构合法但取不到文本的响应生成错误描述。"""

        try:
            api_error = _ApiErrorEnvelope.model_validate_json(body).error
        except PydanticValidationError:
            api_error = None
        if api_error is not None:
            status = api_error.status or "ERROR"
            code = f" ({api_error.code})" if api_error.code is not None else ""
            detail = f": {api_error.message}" if api_error.message else ""
            return f"{PARSE_ERROR_MESSAGE}: {status}{code}{detail}"
        if envelope.prompt_feedback and envelope.prompt_feedback.block_reason:
            return f"{PARSE_ERROR_MESSAGE}: prompt blocked ({envelope.prompt_feedback.block_reason})"
        if envelope.candidates and envelope.candidates[0].finish_reason:
            return f"{PARSE_ERROR_MESSAGE}: no text in candidate (finishReason={envelope.candidates[0].finish_reason})"
        return PARSE_ERROR_MESSAGE
