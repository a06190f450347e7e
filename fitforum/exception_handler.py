import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


def custom_exception_handler(_request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """body/query/path 검증 실패는 400으로 응답합니다."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info("Validation error on %s: %s", request.url.path, errors)
    return JSONResponse(
        status_code=400, content={"message": "Invalid request.", "errors": errors}
    )


def unhandled_exception_handler(request: Request, exc: Exception):
    # 상세 내용은 서버 로그에만 남기고 클라이언트에는 일반 메시지만 반환
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"message": "Server error occurred."})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, custom_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
