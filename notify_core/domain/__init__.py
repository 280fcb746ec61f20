"""领域层模型与协议。

包含：
- models: 会话引用、分页结果与 Teams 查询结果模型。
- activity: 入站/续接活动模型。
- storage: 会话引用存储的 ConversationReferenceStore 抽象。
- exceptions: 业务异常类型定义。
"""
