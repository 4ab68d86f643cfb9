from enum import Enum
from typing import Optional


class ErrorType(str, Enum):
    '''
    业务命令失败的结构化分类

    参数	说明
    DUPLICATE_PHONE:注册、导入或编辑时手机号与已有用户冲突。
    AUTH_FAILED:登录时手机号或密码不匹配。
    AUTH_REQUIRED:接口需要登录，但当前会话没有用户。
    NOT_FOUND:命令引用的用户、议题或选项不存在。
    INVALID_STATE:实体当前状态不允许该操作，例如对已关闭议题投票、重复审核。
    VALIDATION_ERROR:必填字段缺失或输入不符合要求。
    PERMISSION_DENIED:当前角色或管理范围无权执行该操作。
    SYSTEM_ERROR:未知异常或未分类异常。
    '''
    DUPLICATE_PHONE = "DUPLICATE_PHONE"
    AUTH_FAILED = "AUTH_FAILED"
    AUTH_REQUIRED = "AUTH_REQUIRED"

    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    PERMISSION_DENIED = "PERMISSION_DENIED"

    SYSTEM_ERROR = "SYSTEM_ERROR"


class PortalError(Exception):
    """
    Base class for every expected, recoverable command failure.
    The core never formats user-facing text; `message` is for logs and API clients.
    """

    error_type: ErrorType = ErrorType.SYSTEM_ERROR

    def __init__(self, message: str = "", *, entity_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id


class DuplicatePhoneError(PortalError, ValueError):
    error_type = ErrorType.DUPLICATE_PHONE


class AuthError(PortalError, ValueError):
    error_type = ErrorType.AUTH_FAILED


class NotFoundError(PortalError, LookupError):
    error_type = ErrorType.NOT_FOUND


class InvalidStateError(PortalError, ValueError):
    error_type = ErrorType.INVALID_STATE


class ValidationError(PortalError, ValueError):
    error_type = ErrorType.VALIDATION_ERROR


class PermissionDeniedError(PortalError, PermissionError):
    error_type = ErrorType.PERMISSION_DENIED
