"""领域层模型与协议。

包含：
- models: Message / CompletionRequest / CompletionResult 模型。
- conversation: ConversationStore 协议与存储变更事件。
- exceptions: 业务异常类型定义。
"""
