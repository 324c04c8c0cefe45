"""
Error taxonomy shared by the stores and the API layer.

Stores raise these; the handlers registered in postboard.main turn them into
{"message": ...} responses with the matching status code. Anything else that
escapes a request is logged and reported as a generic 500.
"""
from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "You must be logged in."


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Conflict"


class AlreadyLiked(Conflict):
    message = "Post already liked"


class NotLiked(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Post not liked"


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request payload"
