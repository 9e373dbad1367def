from fastapi import Header

from timecard.core.exceptions import BadRequestException


def get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> int:
    """
    Caller identity as resolved by the upstream command layer.

    Authentication happens before requests reach this service.
    """
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise BadRequestException("X-User-Id must be an integer")
    if user_id <= 0:
        raise BadRequestException("X-User-Id must be positive")
    return user_id
