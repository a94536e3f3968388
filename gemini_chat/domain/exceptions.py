"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话层或 API 层做统一捕获与用户提示。

Provider 客户端内部通过抛出这些异常来中断流程，
再在 send() 边界统一转换为 CompletionFailure 数据返回给调用方。
"""

from gemini_chat.domain.models import FailureKind


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 status_code、raw_body 等）。
    """

    kind: FailureKind = "parse_error"

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """API key 缺失或仍为占位值，未发起任何网络请求。"""

    kind: FailureKind = "unconfigured"


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、DNS 解析失败、超时等。"""

    kind: FailureKind = "transport"


class EmptyResponseError(BusinessError):
    """收到响应但响应体为空。"""

    kind: FailureKind = "no_data"


class ResponseParseError(BusinessError):
    """响应体存在但不符合预期的 envelope 结构。"""

    kind: FailureKind = "parse_error"


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
