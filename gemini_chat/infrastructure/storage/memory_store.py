"""进程内的会话存储实现。

消息按插入顺序保存，插入顺序即展示顺序；不做持久化，随会话销毁。
存储本身不加锁，多线程宿主需要在外部保证单写者。
"""

from typing import Callable, List, Optional

from gemini_chat.config.settings import settings
from gemini_chat.domain.conversation import ConversationStore, StoreEvent, StoreListener
from gemini_chat.domain.models import Message, new_message


class MemoryConversationStore(ConversationStore):
    def __init__(self, welcome_text: Optional[str] = None, seed_welcome: bool = True):
        self._welcome_text = welcome_text if welcome_text is not None else settings.welcome_text
        self._messages: List[Message] = []
        self._listeners: List[StoreListener] = []
        if seed_welcome:
            self._messages.append(self._welcome())

    def append(self, message: Message) -> None:
        self._messages.append(message)
        self._notify("append", message)

    def remove(self, message_id: str) -> None:
        for idx, m in enumerate(self._messages):
            if m.id == message_id:
                removed = self._messages.pop(idx)
                self._notify("remove", removed)
                return

    def reset(self) -> None:
        welcome = self._welcome()
        self._messages = [welcome]
        self._notify("reset", welcome)

    def list_messages(self) -> List[Message]:
        return list(self._messages)

    def find_message(self, message_id: str) -> Optional[Message]:
        for m in self._messages:
            if m.id == message_id:
                return m
        return None

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """注册变更监听器，返回取消订阅的函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._messages)

    def _welcome(self) -> Message:
        return new_message("assistant", self._welcome_text)

    def _notify(self, kind, message: Optional[Message]) -> None:
        if not self._listeners:
            return
        event = StoreEvent(kind=kind, message=message, messages=self.list_messages())
        # 监听器可能在回调中取消订阅
        for listener in list(self._listeners):
            listener(event)
