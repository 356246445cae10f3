"""
Utility methods used in the routers
"""

import logging
from typing import Union

from fastapi import HTTPException, status

from police_equipment_pool_api.core.exceptions import (
    InvalidTransitionError,
    ItemNotFoundError,
    NoAvailableItemsError,
    NotAuthorizedError,
    NotInMaintenanceError,
    NotIssuedError,
    PoolLifecycleError,
    WriteConflictError,
)

logger = logging.getLogger()


def lifecycle_http_exception(exc: Union[PoolLifecycleError, WriteConflictError]) -> HTTPException:
    """
    Log an error raised while applying a lifecycle operation to an item and convert it into the `HTTPException` to
    respond with.

    :param exc: The error raised.
    :return: The `HTTPException` to raise.
    """
    if isinstance(exc, ItemNotFoundError):
        status_code, message = status.HTTP_404_NOT_FOUND, "Item not found in the equipment pool"
    elif isinstance(exc, NotAuthorizedError):
        status_code, message = status.HTTP_403_FORBIDDEN, str(exc)
    elif isinstance(exc, NoAvailableItemsError):
        status_code, message = status.HTTP_409_CONFLICT, "No items are available in the equipment pool"
    elif isinstance(exc, WriteConflictError):
        status_code, message = status.HTTP_409_CONFLICT, "The equipment pool was changed by another user, try again"
    elif isinstance(exc, NotIssuedError):
        status_code, message = status.HTTP_422_UNPROCESSABLE_CONTENT, "The item is not currently issued"
    elif isinstance(exc, NotInMaintenanceError):
        status_code, message = status.HTTP_422_UNPROCESSABLE_CONTENT, "The item is not in maintenance"
    elif isinstance(exc, InvalidTransitionError):
        status_code, message = status.HTTP_422_UNPROCESSABLE_CONTENT, str(exc)
    else:
        status_code, message = status.HTTP_422_UNPROCESSABLE_CONTENT, "Unable to apply the operation to the item"

    logger.exception(message)
    return HTTPException(status_code=status_code, detail=message)
