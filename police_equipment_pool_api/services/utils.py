"""
Collection of some utility functions used by services
"""

import logging
from typing import Callable, TypeVar

from police_equipment_pool_api.core.exceptions import WriteConflictError
from police_equipment_pool_api.models.equipment_pool import Custodian
from police_equipment_pool_api.schemas.equipment_pool import OfficerSchema

logger = logging.getLogger()

T = TypeVar("T")


def retry_on_write_conflict(operation: Callable[[], T], max_attempts: int, description: str) -> T:
    """
    Run an operation that reads, mutates and writes back a pool, running it again from the start whenever another
    writer modified the pool in between.

    :param operation: The operation to run. It must re-read everything it depends on each time it is called.
    :param max_attempts: The maximum number of times to run the operation.
    :param description: Description of the operation (used for logging).
    :raises WriteConflictError: If every attempt conflicted with another writer.
    :return: The result of the first attempt that did not conflict.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except WriteConflictError:
            if attempt == max_attempts:
                logger.warning("Giving up on %s after %s conflicting attempts", description, attempt)
                raise
            logger.info("Write conflict on attempt %s of %s, retrying", attempt, description)
    # Only reachable when max_attempts < 1
    raise WriteConflictError(f"No attempts were made at {description}")


def custodian_from_officer(officer: OfficerSchema) -> Custodian:
    """
    Convert the identity of an officer given in a request body into the custodian stored against items and requests.

    :param officer: The identity of the officer.
    :return: The custodian, with the designation stored as its plain string value.
    """
    return Custodian(**officer.model_dump(mode="json"))
