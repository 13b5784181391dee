from fastapi import HTTPException

from rideops.core.exceptions import RideOpsError


def http_error(exc: RideOpsError) -> HTTPException:
    """Переводит доменную ошибку в HTTP ответ."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
