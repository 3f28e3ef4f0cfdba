class ApiError(Exception):
    """
    서비스 계층에서 올리는 도메인 에러
    - status_code: 그대로 HTTP 상태 코드로 사용
    - code: 응답 본문 error.code (예: BAD_REQUEST, NOT_FOUND)
    - middlewares/error_handler.py 에서 표준 에러 응답으로 변환
    """

    _DEFAULT_CODES = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
    }

    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code or self._DEFAULT_CODES.get(status_code, "ERROR")


def bad_request(message: str) -> ApiError:
    return ApiError(400, message)


def not_found(message: str) -> ApiError:
    return ApiError(404, message)


def forbidden(message: str = "You do not have permission to perform this action") -> ApiError:
    return ApiError(403, message)
