"""
Custom validators for API parameters.
"""

from typing import Final

from fastapi import HTTPException

from ..market_data.errors import InvalidOptionError
from ..market_data.query import validate_result_limit
from .models import ErrorResponse

ERROR_INVALID_OPTION: Final[str] = "invalid_option"


def validate_limit(limit: int) -> int:
    """
    Validate the requested page size before it reaches the session.

    Raises:
        HTTPException: If ``limit`` is not one of the supported sizes
    """
    try:
        return validate_result_limit(limit)
    except InvalidOptionError as e:
        raise HTTPException(
            status_code=422,
            detail=ErrorResponse(error=ERROR_INVALID_OPTION, message=str(e)).model_dump(),
        ) from e
