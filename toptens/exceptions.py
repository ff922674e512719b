from fastapi import HTTPException, status


class Unauthorized(HTTPException):
    def __init__(self, detail : str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFound(HTTPException):
    def __init__(self, detail : str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidArgument(HTTPException):
    def __init__(self, detail : str = "Invalid argument"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail : str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class Internal(HTTPException):
    def __init__(self, detail : str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
