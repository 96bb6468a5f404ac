"""
业务异常定义

服务层只抛出 ServiceError 子类，由 app.main 中的异常处理器统一映射为 HTTP 响应。
"""
from typing import Any, List, Optional

from fastapi import status


class ServiceError(Exception):
    """业务异常基类"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "服务器内部错误"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[List[Any]] = None,
    ):
        self.message = message or self.default_message
        if error_code:
            self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "请求参数无效"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "资源不存在"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_message = "未授权"


class InvalidCredentials(Unauthorized):
    error_code = "INVALID_CREDENTIALS"
    default_message = "邮箱或密码错误"


class TokenMalformed(Unauthorized):
    default_message = "无效的认证令牌"


class TokenExpired(Unauthorized):
    default_message = "认证令牌已过期"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "无权操作该资源"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "资源已存在"


class AlreadyVerified(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "ALREADY_VERIFIED"
    default_message = "邮箱已验证"


class OtpError(ServiceError):
    """验证码相关异常基类"""


class OtpNotFound(OtpError, NotFound):
    error_code = "NOT_FOUND"
    default_message = "验证码不存在，请先申请"


class OtpAlreadyConfirmed(OtpError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "OTP_ALREADY_VERIFIED"
    default_message = "验证码已验证"


class OtpInvalidOrExpired(OtpError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "INVALID_OR_EXPIRED_OTP"
    default_message = "验证码无效或已过期"


class OtpNotVerified(OtpError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "OTP_NOT_VERIFIED"
    default_message = "验证码尚未验证"


class EmailDeliveryError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "EMAIL_DELIVERY_FAILED"
    default_message = "邮件发送失败，请稍后重试"
