from fastapi import HTTPException


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid request."):
        super().__init__(status_code=400, detail=detail)


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Authentication failed."):
        super().__init__(
            status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Permission denied."):
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found."):
        super().__init__(status_code=404, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict."):
        super().__init__(status_code=409, detail=detail)
