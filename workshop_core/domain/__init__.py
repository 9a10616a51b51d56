"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- conversation: 客户端侧的对话历史 ChatHistory。
- exceptions: 业务异常类型定义。
"""
