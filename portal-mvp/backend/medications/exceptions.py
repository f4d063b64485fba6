"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / block / error）
- code:        业务错误码（UNKNOWN_ACTION / MEDICATION_SAVE_FAILED / ...）
- message:     人类可读的描述
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

Manager / View 层只需 raise，exception_handler 统一捕获并格式化响应。
每个异常对触发它的调用都是终结性的：不重试、不退避。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """输入验证失败，400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class BlockError(BaseAppException):
    """业务规则阻止操作，409（找不到记录时覆盖为 404）。"""

    type = 'block'
    code = 'BUSINESS_BLOCK'
    http_status = 409


# ── Row store ──────────────────────────────────────────────────────────────

class StoreError(BaseAppException):
    """Row store 拒绝请求或不可达。store 层抛出，manager 层转成下面的具体错误。"""

    code = 'STORE_ERROR'
    http_status = 502


# ── Medication lifecycle ───────────────────────────────────────────────────

class LoadError(BaseAppException):
    """
    初次加载失败。

    cache 保持调用前的内容（首次加载则为空），loading 标志已清除。
    用户看到空列表而不是阻塞性的错误页。
    """

    code = 'MEDICATION_LOAD_FAILED'
    http_status = 502


class SaveError(BaseAppException):
    """编辑保存失败（update 或之后的 re-fetch）。edit session 保持打开，用户可手动重试。"""

    code = 'MEDICATION_SAVE_FAILED'
    http_status = 502


class ActionError(BaseAppException):
    """状态转换失败的基类。"""

    code = 'ACTION_FAILED'
    http_status = 502


class UnknownActionError(ActionError):
    """action 不在 continue / discontinue / suspend 之内。在任何远程调用之前拒绝。"""

    type = 'validation_error'
    code = 'UNKNOWN_ACTION'
    http_status = 400


class RemoteRejectedError(ActionError):
    """store 拒绝了 status 更新，cache 不变。"""

    code = 'REMOTE_REJECTED'
    http_status = 502
