"""
统一异常处理器，挂到 DRF 的 EXCEPTION_HANDLER setting 上。

前端用同一套逻辑判断响应：
  body.type 存在（'validation_error' / 'block' / 'error'）→ 出问题了，行内展示失败
  没有 type 字段 → 成功

错误响应格式：
{
    "type":    "error",
    "code":    "REMOTE_REJECTED",
    "message": "Row store rejected status update for medication ...",
    "detail":  { ... }  // 可选
}
"""

import logging

from django.http import JsonResponse
from rest_framework.exceptions import ParseError
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler as drf_default_handler

from .exceptions import BaseAppException

logger = logging.getLogger(__name__)


def _error_body(type_, code, message, detail=None):
    body = {'type': type_, 'code': code, 'message': message}
    if detail is not None:
        body['detail'] = detail
    return body


def unified_exception_handler(exc, context):
    """
    优先级：
    1. BaseAppException 及其子类 → 统一格式（5xx 额外记一条 error 日志）
    2. DRF 的 ValidationError / ParseError（请求体不合法）→ 转成 validation_error
    3. 其他异常 → 交给 DRF 默认处理
    """
    if isinstance(exc, BaseAppException):
        if exc.http_status >= 500:
            view = context.get('view') if context else None
            logger.error(
                "[API] %s failed with %s: %s",
                type(view).__name__ if view else 'unknown view', exc.code, exc.message,
            )
        body = _error_body(exc.type, exc.code, exc.message, exc.detail)
        return JsonResponse(body, status=exc.http_status)

    if isinstance(exc, DRFValidationError):
        body = _error_body('validation_error', 'VALIDATION_ERROR', 'Request validation failed', exc.detail)
        return JsonResponse(body, status=400)

    if isinstance(exc, ParseError):
        body = _error_body('validation_error', 'MALFORMED_REQUEST', str(exc.detail))
        return JsonResponse(body, status=400)

    return drf_default_handler(exc, context)
