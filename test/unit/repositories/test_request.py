"""
Unit tests for the `RequestRepo` repository.
"""

from datetime import datetime, timezone
from test.mock_data import ADMIN_USER_ID, EQUIPMENT_POOL_DATA_GLOCK, OFFICER_DATA_PC, REQUEST_POST_DATA_ISSUE
from test.unit.repositories.conftest import RepositoryTestHelpers
from typing import Optional
from unittest.mock import ANY, MagicMock, Mock, call, patch

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure

from police_equipment_pool_api.core.custom_object_id import CustomObjectId
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
from police_equipment_pool_api.repositories.request import RequestRepo

REQUEST_REPO_FIXED_DATETIME_NOW = datetime(2025, 3, 1, 9, 0, 0, 0, tzinfo=timezone.utc)


def build_request_in(pool_id: str, request_number: str = "REQ-20250301-0001", **kwargs) -> RequestIn:
    """
    Build an Issue request.

    :param pool_id: The ID of the pool the request is for.
    :param request_number: The number of the request.
    :return: The request.
    """
    return RequestIn(
        **REQUEST_POST_DATA_ISSUE,
        pool_id=pool_id,
        pool_name=EQUIPMENT_POOL_DATA_GLOCK["pool_name"],
        request_number=request_number,
        **kwargs,
    )


class RequestRepoDSL:
    """Base class for `RequestRepo` unit tests."""

    mock_database: Mock
    request_repository: RequestRepo
    requests_collection: Mock

    mock_session = MagicMock()

    @pytest.fixture(autouse=True)
    def setup(self, database_mock):
        """Setup fixtures"""
        self.mock_database = database_mock
        self.request_repository = RequestRepo(database_mock)
        self.requests_collection = database_mock.requests

        self.mock_session = MagicMock()
        with patch("police_equipment_pool_api.repositories.request.datetime") as mock_datetime:
            mock_datetime.now.return_value = REQUEST_REPO_FIXED_DATETIME_NOW
            yield


class TestCreate(RequestRepoDSL):
    """Tests for creating a request."""

    def test_create(self):
        """Test creating a request."""
        inserted_request_id = CustomObjectId(str(ObjectId()))
        request_in = build_request_in(str(ObjectId()))
        RepositoryTestHelpers.mock_insert_one(self.requests_collection, inserted_request_id)
        RepositoryTestHelpers.mock_find_one(
            self.requests_collection, {**request_in.model_dump(), "_id": inserted_request_id}
        )

        created_request = self.request_repository.create(request_in, session=self.mock_session)

        self.requests_collection.insert_one.assert_called_once_with(request_in.model_dump(), session=self.mock_session)
        self.requests_collection.find_one.assert_called_once_with(
            {"_id": inserted_request_id}, session=self.mock_session
        )
        assert created_request == RequestOut(**request_in.model_dump(), id=inserted_request_id)

    def test_create_with_taken_request_number(self):
        """Test creating a request whose number was taken by a concurrent create."""
        request_in = build_request_in(str(ObjectId()))
        self.requests_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

        with pytest.raises(WriteConflictError) as exc:
            self.request_repository.create(request_in, session=self.mock_session)

        assert str(exc.value) == f"Request number {request_in.request_number} is already taken"
        self.requests_collection.find_one.assert_not_called()


class TestList(RequestRepoDSL):
    """Tests for listing requests."""

    def test_list(self):
        """Test listing all requests, newest first."""
        RepositoryTestHelpers.mock_find(self.requests_collection, [])

        assert self.request_repository.list(session=self.mock_session) == []

        self.requests_collection.find.assert_called_once_with({}, session=self.mock_session)
        self.requests_collection.find.return_value.sort.assert_called_once_with("created_time", -1)
        self.requests_collection.find.return_value.limit.assert_not_called()

    def test_list_newest_pending(self):
        """Test listing only the newest few pending requests."""
        RepositoryTestHelpers.mock_find(self.requests_collection, [])

        self.request_repository.list(status="Pending", limit=5, session=self.mock_session)

        self.requests_collection.find.assert_called_once_with({"status": "Pending"}, session=self.mock_session)
        self.requests_collection.find.return_value.sort.assert_called_once_with("created_time", -1)
        self.requests_collection.find.return_value.limit.assert_called_once_with(5)

    def test_list_with_filters(self):
        """Test listing the requests of an officer with a given status and type."""
        request_in = build_request_in(str(ObjectId()))
        RepositoryTestHelpers.mock_find(self.requests_collection, [{**request_in.model_dump(), "_id": ObjectId()}])

        requests = self.request_repository.list(
            status="Pending", request_type="Issue", user_id=OFFICER_DATA_PC["user_id"], session=self.mock_session
        )

        assert [request.request_number for request in requests] == ["REQ-20250301-0001"]
        self.requests_collection.find.assert_called_once_with(
            {"status": "Pending", "request_type": "Issue", "requested_by.user_id": OFFICER_DATA_PC["user_id"]},
            session=self.mock_session,
        )


class TestFindPending(RequestRepoDSL):
    """Tests for finding the pending request of an officer."""

    @pytest.mark.parametrize(
        "unique_id, expected_unique_id_filter",
        [
            pytest.param(None, {}, id="without_item"),
            pytest.param("GLK-001", {"assigned_unique_id": "GLK-001"}, id="with_item"),
        ],
    )
    def test_find_pending(self, unique_id, expected_unique_id_filter):
        """Test only requests about the same item are matched when an item is given."""
        pool_id = str(ObjectId())
        RepositoryTestHelpers.mock_find_one(self.requests_collection, None)

        assert (
            self.request_repository.find_pending(
                OFFICER_DATA_PC["user_id"], pool_id, RequestType.ISSUE, unique_id=unique_id, session=self.mock_session
            )
            is None
        )
        self.requests_collection.find_one.assert_called_once_with(
            {
                "requested_by.user_id": OFFICER_DATA_PC["user_id"],
                "pool_id": CustomObjectId(pool_id),
                "request_type": RequestType.ISSUE,
                "status": RequestStatus.PENDING,
                **expected_unique_id_filter,
            },
            session=self.mock_session,
        )


class TestFindActiveIssue(RequestRepoDSL):
    """Tests for finding the Issue request an item is held under."""

    def test_find_active_issue(self):
        """Test the most recently approved Issue request of the holder is found."""
        pool_id = str(ObjectId())
        request_in = build_request_in(pool_id, status=RequestStatus.APPROVED, assigned_unique_id="GLK-001")
        RepositoryTestHelpers.mock_find_one(self.requests_collection, {**request_in.model_dump(), "_id": ObjectId()})

        request = self.request_repository.find_active_issue(
            OFFICER_DATA_PC["user_id"], pool_id, "GLK-001", session=self.mock_session
        )

        assert request.assigned_unique_id == "GLK-001"
        self.requests_collection.find_one.assert_called_once_with(
            {
                "requested_by.user_id": OFFICER_DATA_PC["user_id"],
                "pool_id": CustomObjectId(pool_id),
                "assigned_unique_id": "GLK-001",
                "request_type": RequestType.ISSUE,
                "status": RequestStatus.APPROVED,
            },
            sort=[("approved_date", -1)],
            session=self.mock_session,
        )


class TestNextRequestNumber(RequestRepoDSL):
    """Tests for numbering requests."""

    @pytest.mark.parametrize(
        "last_request_number, expected_request_number",
        [
            pytest.param(None, "REQ-20250301-0001", id="first_of_the_day"),
            pytest.param("REQ-20250301-0041", "REQ-20250301-0042", id="following_on"),
        ],
    )
    def test_next_request_number(self, last_request_number: Optional[str], expected_request_number: str):
        """Test the sequence carries on from the last request of the day."""
        RepositoryTestHelpers.mock_find_one(
            self.requests_collection, {"request_number": last_request_number} if last_request_number else None
        )

        assert self.request_repository.next_request_number(session=self.mock_session) == expected_request_number
        self.requests_collection.find_one.assert_called_once_with(
            {"request_number": {"$regex": "^REQ\\-20250301\\-"}},
            sort=[("request_number", -1)],
            session=self.mock_session,
        )


class TestCountByStatus(RequestRepoDSL):
    """Tests for counting requests by status."""

    def test_count_by_status(self):
        """Test every request is grouped by status."""
        RepositoryTestHelpers.mock_aggregate(
            self.requests_collection, [{"_id": "Pending", "count": 3}, {"_id": "Completed", "count": 2}]
        )

        counts = self.request_repository.count_by_status(session=self.mock_session)

        assert counts == {"Pending": 3, "Completed": 2}
        self.requests_collection.aggregate.assert_called_once_with(
            [{"$group": {"_id": "$status", "count": {"$sum": 1}}}], session=self.mock_session
        )

    def test_count_by_status_within_period(self):
        """Test only the requests created within the period are grouped."""
        created_from = datetime(2025, 2, 1, tzinfo=timezone.utc)
        RepositoryTestHelpers.mock_aggregate(self.requests_collection, [])

        counts = self.request_repository.count_by_status(
            created_from=created_from, created_to=REQUEST_REPO_FIXED_DATETIME_NOW, session=self.mock_session
        )

        assert counts == {}
        self.requests_collection.aggregate.assert_called_once_with(
            [
                {"$match": {"created_time": {"$gte": created_from, "$lte": REQUEST_REPO_FIXED_DATETIME_NOW}}},
                {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            ],
            session=self.mock_session,
        )


class UpdateStatusDSL(RequestRepoDSL):
    """Base class for `update_status` tests."""

    _request_id: str
    _status_history_entry: StatusHistoryEntry
    _updated_request: RequestOut
    _update_status_exception: pytest.ExceptionInfo

    def mock_update_status(self, matched: bool = True, request_exists: bool = True) -> None:
        """
        Mocks database methods appropriately to test the `update_status` repo method rejecting a request.

        :param matched: Whether the request was still pending.
        :param request_exists: Whether the request exists (only used when the request was not pending).
        """
        self._request_id = str(ObjectId())
        self._status_history_entry = StatusHistoryEntry(
            status=RequestStatus.REJECTED, changed_by=ADMIN_USER_ID, changed_date=REQUEST_REPO_FIXED_DATETIME_NOW
        )
        rejected_request = build_request_in(
            str(ObjectId()), status=RequestStatus.REJECTED, status_history=[self._status_history_entry]
        )
        self.requests_collection.find_one_and_update.return_value = (
            {**rejected_request.model_dump(), "_id": CustomObjectId(self._request_id)} if matched else None
        )
        if not matched:
            RepositoryTestHelpers.mock_find_one(
                self.requests_collection, {"_id": CustomObjectId(self._request_id)} if request_exists else None
            )

    def call_update_status(self) -> None:
        """Calls the `RequestRepo` `update_status` method to reject a pending request."""
        self._updated_request = self.request_repository.update_status(
            self._request_id,
            [RequestStatus.PENDING],
            {"status": RequestStatus.REJECTED},
            self._status_history_entry,
            session=self.mock_session,
        )

    def call_update_status_expecting_error(self, error_type: type[BaseException]) -> None:
        """
        Calls the `RequestRepo` `update_status` method while expecting an error to be raised.

        :param error_type: Expected exception to be raised.
        """
        with pytest.raises(error_type) as exc:
            self.call_update_status()
        self._update_status_exception = exc

    def check_update_status_attempted(self) -> None:
        """Checks the status was only changed if the request was still in the expected status."""
        self.requests_collection.find_one_and_update.assert_called_once_with(
            {"_id": CustomObjectId(self._request_id), "status": {"$in": [RequestStatus.PENDING]}},
            {
                "$set": {"status": RequestStatus.REJECTED, "modified_time": REQUEST_REPO_FIXED_DATETIME_NOW},
                "$push": {"status_history": self._status_history_entry.model_dump()},
            },
            return_document=ReturnDocument.AFTER,
            session=self.mock_session,
        )


class TestUpdateStatus(UpdateStatusDSL):
    """Tests for changing the status of a request."""

    def test_update_status(self):
        """Test changing the status of a pending request."""
        self.mock_update_status()
        self.call_update_status()
        self.check_update_status_attempted()
        assert self._updated_request.status == RequestStatus.REJECTED
        assert self._updated_request.status_history == [self._status_history_entry]

    def test_update_status_of_processed_request(self):
        """Test changing the status of a request that has already left the expected status."""
        self.mock_update_status(matched=False)
        self.call_update_status_expecting_error(InvalidRequestStateError)
        self.check_update_status_attempted()
        assert str(self._update_status_exception.value) == (
            f"Request with ID: {self._request_id} is not in one of the statuses: Pending"
        )

    def test_update_status_of_non_existent_request(self):
        """Test changing the status of a request that doesn't exist."""
        self.mock_update_status(matched=False, request_exists=False)
        self.call_update_status_expecting_error(MissingRecordError)
        self.requests_collection.find_one.assert_has_calls(
            [call({"_id": CustomObjectId(self._request_id)}, {"_id": 1}, session=self.mock_session)]
        )

    def test_update_status_transaction_conflict(self):
        """Test a write conflict reported by the server within a transaction."""
        self.mock_update_status()
        self.requests_collection.find_one_and_update.side_effect = OperationFailure(
            "WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]}
        )
        self.call_update_status_expecting_error(WriteConflictError)


class TestUpdate(RequestRepoDSL):
    """Tests for setting fields of a request."""

    def test_update(self):
        """Test recording the item an Issue request was fulfilled with."""
        request_id = str(ObjectId())
        request_in = build_request_in(str(ObjectId()), status=RequestStatus.APPROVED, assigned_unique_id="GLK-002")
        self.requests_collection.find_one_and_update.return_value = {
            **request_in.model_dump(),
            "_id": CustomObjectId(request_id),
        }

        request = self.request_repository.update(
            request_id, {"assigned_unique_id": "GLK-002"}, session=self.mock_session
        )

        assert request.assigned_unique_id == "GLK-002"
        self.requests_collection.find_one_and_update.assert_called_once_with(
            {"_id": CustomObjectId(request_id)},
            {"$set": {"assigned_unique_id": "GLK-002", "modified_time": ANY}},
            return_document=ReturnDocument.AFTER,
            session=self.mock_session,
        )

    def test_update_non_existent(self):
        """Test setting fields of a request that doesn't exist."""
        self.requests_collection.find_one_and_update.return_value = None
        with pytest.raises(MissingRecordError):
            self.request_repository.update(
                str(ObjectId()), {"assigned_unique_id": "GLK-002"}, session=self.mock_session
            )
