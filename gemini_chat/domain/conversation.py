from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Protocol

from .models import Message


StoreEventKind = Literal["append", "remove", "reset"]


@dataclass
class StoreEvent:
    kind: StoreEventKind
    message: Optional[Message]
    messages: List[Message] = field(default_factory=list)


StoreListener = Callable[[StoreEvent], None]


class ConversationStore(Protocol):
    def append(self, message: Message) -> None:
        ...

    def remove(self, message_id: str) -> None:
        ...

    def reset(self) -> None:
        ...

    def list_messages(self) -> List[Message]:
        ...

    def find_message(self, message_id: str) -> Optional[Message]:
        ...

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        ...
