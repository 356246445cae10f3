"""
Module for providing a repository for managing officer requests in a MongoDB database.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, OperationFailure

from police_equipment_pool_api.core.consts import REQUEST_NUMBER_SEQUENCE_WIDTH
from police_equipment_pool_api.core.custom_object_id import CustomObjectId
from police_equipment_pool_api.core.database import DatabaseDep
from police_equipment_pool_api.core.exceptions import (
    InvalidRequestStateError,
    MissingRecordError,
    WriteConflictError,
)
from police_equipment_pool_api.models.request import (
    RequestIn,
    RequestOut,
    RequestStatus,
    RequestType,
    StatusHistoryEntry,
)

logger = logging.getLogger()


class RequestRepo:
    """
    Repository for managing officer requests in a MongoDB database.
    """

    def __init__(self, database: DatabaseDep) -> None:
        """
        Initialize the `RequestRepo` with a MongoDB database instance.

        :param database: The database to use.
        """
        self._database = database
        self._requests_collection: Collection = self._database.requests

    def create(self, request: RequestIn, session: ClientSession = None) -> RequestOut:
        """
        Create a new request in a MongoDB database.

        :param request: The request to be created.
        :param session: PyMongo ClientSession to use for database operations
        :return: The created request.
        :raises WriteConflictError: If another request took the same request number first.
        """
        logger.info("Inserting the new request into the database")
        try:
            result = self._requests_collection.insert_one(request.model_dump(), session=session)
        except DuplicateKeyError as exc:
            raise WriteConflictError(f"Request number {request.request_number} is already taken") from exc

        request = self.get(str(result.inserted_id), session=session)
        return request

    def get(self, request_id: str, session: ClientSession = None) -> Optional[RequestOut]:
        """
        Retrieve a request by its ID from a MongoDB database.

        :param request_id: The ID of the request to retrieve.
        :param session: PyMongo ClientSession to use for database operations
        :return: The retrieved request, or `None` if not found.
        """
        request_id = CustomObjectId(request_id)
        logger.info("Retrieving request with ID: %s from the database", request_id)
        request = self._requests_collection.find_one({"_id": request_id}, session=session)
        if request:
            return RequestOut(**request)
        return None

    def list(
        self,
        status: Optional[str] = None,
        request_type: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        session: ClientSession = None,
    ) -> List[RequestOut]:
        """
        Retrieve requests from a MongoDB database, newest first.

        :param status: Status to filter requests by.
        :param request_type: Type to filter requests by.
        :param user_id: Only include requests made by the user with this ID.
        :param limit: The most requests to retrieve, all of them if not given.
        :param session: PyMongo ClientSession to use for database operations
        :return: List of requests or an empty list if no requests are retrieved
        """
        query = {}
        if status:
            query["status"] = status
        if request_type:
            query["request_type"] = request_type
        if user_id:
            query["requested_by.user_id"] = user_id

        message = "Retrieving all requests from the database"
        if not query:
            logger.info(message)
        else:
            logger.info("%s matching the provided filter(s)", message)
            logger.debug("Provided filter(s): %s", query)

        requests = self._requests_collection.find(query, session=session).sort("created_time", -1)
        if limit:
            requests = requests.limit(limit)
        return [RequestOut(**request) for request in requests]

    def find_pending(
        self,
        user_id: str,
        pool_id: str,
        request_type: RequestType,
        unique_id: Optional[str] = None,
        session: ClientSession = None,
    ) -> Optional[RequestOut]:
        """
        Find a pending request of the given type made by a user against a pool.

        :param user_id: The ID of the user that made the request.
        :param pool_id: The ID of the pool the request is for.
        :param request_type: The type of the request.
        :param unique_id: The unique ID of the item the request is about, if it is about a specific item.
        :param session: PyMongo ClientSession to use for database operations
        :return: The pending request, or `None` if there isn't one.
        """
        logger.info("Looking for a pending %s request by user %s for pool %s", request_type, user_id, pool_id)
        query = {
            "requested_by.user_id": user_id,
            "pool_id": CustomObjectId(pool_id),
            "request_type": request_type,
            "status": RequestStatus.PENDING,
        }
        if unique_id:
            query["assigned_unique_id"] = unique_id
        request = self._requests_collection.find_one(query, session=session)
        if request:
            return RequestOut(**request)
        return None

    def find_active_issue(
        self, user_id: str, pool_id: str, unique_id: str, session: ClientSession = None
    ) -> Optional[RequestOut]:
        """
        Find the approved Issue request that an item is currently held under.

        :param user_id: The ID of the user holding the item.
        :param pool_id: The ID of the pool the item belongs to.
        :param unique_id: The unique ID of the item.
        :param session: PyMongo ClientSession to use for database operations
        :return: The approved Issue request, or `None` if there isn't one.
        """
        logger.info("Looking for the approved Issue request of item %s held by user %s", unique_id, user_id)
        request = self._requests_collection.find_one(
            {
                "requested_by.user_id": user_id,
                "pool_id": CustomObjectId(pool_id),
                "assigned_unique_id": unique_id,
                "request_type": RequestType.ISSUE,
                "status": RequestStatus.APPROVED,
            },
            sort=[("approved_date", -1)],
            session=session,
        )
        if request:
            return RequestOut(**request)
        return None

    def next_request_number(self, session: ClientSession = None) -> str:
        """
        Generate the next request number for today, of the form `REQ-YYYYMMDD-NNNN`.

        The sequence restarts at 1 each day.

        :param session: PyMongo ClientSession to use for database operations
        :return: The request number.
        """
        prefix = f"REQ-{datetime.now(timezone.utc).strftime('%Y%m%d')}-"
        last_request = self._requests_collection.find_one(
            {"request_number": {"$regex": f"^{re.escape(prefix)}"}},
            sort=[("request_number", -1)],
            session=session,
        )

        sequence = 1
        if last_request:
            sequence = int(last_request["request_number"].rsplit("-", 1)[-1]) + 1
        return f"{prefix}{str(sequence).zfill(REQUEST_NUMBER_SEQUENCE_WIDTH)}"

    def count_by_status(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        session: ClientSession = None,
    ) -> Dict[str, int]:
        """
        Count the requests in each status, optionally only those created within a period.

        :param created_from: Only count requests created at or after this time.
        :param created_to: Only count requests created at or before this time.
        :param session: PyMongo ClientSession to use for database operations
        :return: Dictionary mapping each status found to the number of requests with it.
        """
        created_time = {}
        if created_from:
            created_time["$gte"] = created_from
        if created_to:
            created_time["$lte"] = created_to

        pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
        if created_time:
            pipeline.insert(0, {"$match": {"created_time": created_time}})

        logger.info("Counting the requests in each status")
        logger.debug("Created time filter: %s", created_time)
        result = self._requests_collection.aggregate(pipeline, session=session)
        return {group["_id"]: group["count"] for group in result}

    def update_status(
        self,
        request_id: str,
        expected_statuses: List[RequestStatus],
        update: dict,
        status_history_entry: StatusHistoryEntry,
        session: ClientSession = None,
    ) -> RequestOut:
        """
        Move a request to a new status, but only if it is still in one of the expected statuses.

        The check and the write are a single conditional update, so of two concurrent attempts to process the same
        request only one can succeed.

        :param request_id: The ID of the request to update.
        :param expected_statuses: The statuses the request must currently be in.
        :param update: The fields to set, including the new `status`.
        :param status_history_entry: The entry to append to the status history of the request.
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the request doesn't exist.
        :raises InvalidRequestStateError: If the request is not in one of the expected statuses.
        :raises WriteConflictError: If the request is being updated by a concurrent transaction.
        :return: The updated request.
        """
        request_id = CustomObjectId(request_id)
        logger.info("Updating status of request with ID: %s to %s in the database", request_id, update.get("status"))
        try:
            request = self._requests_collection.find_one_and_update(
                {"_id": request_id, "status": {"$in": expected_statuses}},
                {
                    "$set": {**update, "modified_time": datetime.now(timezone.utc)},
                    "$push": {"status_history": status_history_entry.model_dump()},
                },
                return_document=ReturnDocument.AFTER,
                session=session,
            )
        except OperationFailure as exc:
            if exc.has_error_label("TransientTransactionError"):
                raise WriteConflictError(f"Request with ID: {str(request_id)} is being processed concurrently") from exc
            raise
        if request:
            return RequestOut(**request)

        if self._requests_collection.find_one({"_id": request_id}, {"_id": 1}, session=session) is None:
            raise MissingRecordError(f"No request found with ID: {str(request_id)}")
        raise InvalidRequestStateError(
            f"Request with ID: {str(request_id)} is not in one of the statuses: "
            f"{', '.join(status.value for status in expected_statuses)}"
        )

    def update(self, request_id: str, update: dict, session: ClientSession = None) -> RequestOut:
        """
        Set fields of a request that do not change its status.

        :param request_id: The ID of the request to update.
        :param update: The fields to set.
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the request doesn't exist.
        :return: The updated request.
        """
        request_id = CustomObjectId(request_id)
        logger.info("Updating request with ID: %s in the database", request_id)
        logger.debug("Updated fields: %s", update)
        request = self._requests_collection.find_one_and_update(
            {"_id": request_id},
            {"$set": {**update, "modified_time": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if request is None:
            raise MissingRecordError(f"No request found with ID: {str(request_id)}")
        return RequestOut(**request)
