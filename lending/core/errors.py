from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Entidad o colección inexistente."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """Operación no permitida: código duplicado, miembro no elegible, sin stock."""

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class CodeCollisionError(HTTPException):
    """
    Dos altas concurrentes calcularon el mismo código de miembro.
    El cliente debe reintentar.
    """

    def __init__(self, detail: str = "Code already exists, please try again in a few minutes"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InternalError(HTTPException):
    # El detalle original se loguea, nunca se devuelve al cliente
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
