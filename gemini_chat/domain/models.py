"""统一的消息与补全结果数据模型。

本模块定义了会话存储与 Provider 客户端之间共享的标准数据结构：

- Message: 一条对话消息（user/assistant），创建后不可修改。
- CompletionRequest: 发给 Gemini 端点的一次请求。
- CompletionSuccess / CompletionFailure: 一次调用的结果，二者合称 CompletionResult。

Provider 适配器（如 GeminiClient）只依赖这些模型，
负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, Union, TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from gemini_chat.domain.exceptions import BusinessError


# 消息作者，仅区分用户与助手
Author = Literal["user", "assistant"]

# 失败分类，与 domain.exceptions 中的异常一一对应
FailureKind = Literal["unconfigured", "transport", "no_data", "parse_error"]

RETRYABLE_KINDS = frozenset({"transport", "no_data"})


@dataclass(frozen=True)
class Message:
    """一条对话消息。

    - id: 创建时分配的唯一标识。
    - text: 消息正文。
    - author: 作者，user 或 assistant。
    - created_at: 创建时间（UTC）。
    - meta: 附加元数据（如 trace_id，只读），仅用于日志与展示，不参与比较与哈希。

    消息一旦创建就不再修改，“编辑”通过删除后重新创建实现。
    """

    id: str
    text: str
    author: Author
    created_at: datetime
    meta: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False, compare=False)

    @property
    def is_user(self) -> bool:
        return self.author == "user"


def new_message(author: Author, text: str, **meta: Any) -> Message:
    """创建一条带新 id 与当前时间戳的消息。"""

    return Message(
        id=f"m-{uuid4().hex}",
        text=text,
        author=author,
        created_at=datetime.now(timezone.utc),
        meta=MappingProxyType(dict(meta)),
    )


@dataclass
class CompletionRequest:
    """一次补全请求，只携带用户输入的原始文本。"""

    prompt: str


@dataclass
class CompletionSuccess:
    """调用成功：text 为首个候选的首个 part 的文本。"""

    text: str
    finish_reason: Optional[str] = None
    raw: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass
class CompletionFailure:
    """调用失败，kind 给出分类，message 为可展示的错误描述。

    - http_status: 收到响应时的 HTTP 状态码（网络错误或未配置时为 None）。
    - raw_body: 无法解析时保留的原始响应文本，便于排查。
    """

    kind: FailureKind
    message: str
    http_status: Optional[int] = None
    raw_body: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        """相同 prompt 直接重发是否安全。"""

        return self.kind in RETRYABLE_KINDS

    @classmethod
    def from_error(cls, err: "BusinessError") -> "CompletionFailure":
        return cls(
            kind=err.kind,
            message=err.message,
            http_status=err.extra.get("status_code"),
            raw_body=err.extra.get("raw_body"),
        )


CompletionResult = Union[CompletionSuccess, CompletionFailure]
