"""
Module for providing a custom implementation of the `ObjectId` class.
"""

from typing import Union

from bson import ObjectId

from police_equipment_pool_api.core.exceptions import InvalidObjectIdError


class CustomObjectId(ObjectId):
    """
    `ObjectId` of a pool or request that raises `InvalidObjectIdError` rather than a `bson` error, so that IDs
    supplied in paths and payloads can be reported as not found.
    """

    def __init__(self, value: Union[str, ObjectId]):
        """
        Construct a `CustomObjectId` from a string given by a client, or an `ObjectId` read back from the database.

        :param value: The value representing the `ObjectId`.
        :raises InvalidObjectIdError: If the value is neither an `ObjectId` nor a valid `ObjectId` string.
        """
        if isinstance(value, ObjectId):
            super().__init__(value)
            return

        if not isinstance(value, str):
            raise InvalidObjectIdError(f"ObjectId value '{value}' must be a string")

        if not ObjectId.is_valid(value):
            raise InvalidObjectIdError(f"Invalid ObjectId value '{value}'")

        super().__init__(value)
