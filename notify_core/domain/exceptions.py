"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在宿主的 HTTP 层或 on_turn_error 中统一捕获。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"、"BotNotInConversationRoster"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、service_url 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """Connector 返回非 2xx 时抛出，code 为平台给出的错误码。"""


class RateLimitError(BusinessError):
    """Connector 限流错误，本库不做重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


# 平台在 bot 已被移出会话时返回的错误码
BOT_NOT_IN_CONVERSATION_ROSTER = "BotNotInConversationRoster"
