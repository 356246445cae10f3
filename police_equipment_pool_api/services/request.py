"""
Module for providing a service for managing officer requests using the `RequestRepo` and `EquipmentPoolRepo`
repositories, applying approved requests to their pools through the `EquipmentPoolService`.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from fastapi import Depends
from pymongo.client_session import ClientSession

from police_equipment_pool_api.core.config import config
from police_equipment_pool_api.core.database import (
    TRANSACTION_READ_CONCERN,
    TRANSACTION_WRITE_CONCERN,
    mongodb_client,
)
from police_equipment_pool_api.core.exceptions import (
    DuplicateRecordError,
    InvalidActionError,
    InvalidRequestStateError,
    InvalidTransitionError,
    ItemNotFoundError,
    MissingRecordError,
    NoAvailableItemsError,
    NotAuthorizedError,
    NotIssuedError,
)
from police_equipment_pool_api.models.equipment_pool import (
    EquipmentPoolOut,
    FIRDetails,
    ItemStatus,
    ReportedCondition,
)
from police_equipment_pool_api.models.request import (
    RequestIn,
    RequestOut,
    RequestStatus,
    RequestType,
    StatusHistoryEntry,
)
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo
from police_equipment_pool_api.repositories.request import RequestRepo
from police_equipment_pool_api.schemas.request import (
    RequestApproveSchema,
    RequestCancelSchema,
    RequestPostSchema,
    RequestRejectSchema,
)
from police_equipment_pool_api.services import utils
from police_equipment_pool_api.services.equipment_pool import EquipmentPoolService

logger = logging.getLogger()

# Condition assumed for an item handed back without the officer or the approver stating one
DEFAULT_RETURN_CONDITION = ReportedCondition.GOOD


class RequestService:
    """
    Service for managing officer requests.
    """

    def __init__(
        self,
        request_repository: Annotated[RequestRepo, Depends(RequestRepo)],
        equipment_pool_repository: Annotated[EquipmentPoolRepo, Depends(EquipmentPoolRepo)],
        equipment_pool_service: Annotated[EquipmentPoolService, Depends(EquipmentPoolService)],
    ) -> None:
        """
        Initialise the `RequestService` with a `RequestRepo` and `EquipmentPoolRepo` repos and an
        `EquipmentPoolService`.

        :param request_repository: The `RequestRepo` repository to use.
        :param equipment_pool_repository: The `EquipmentPoolRepo` repository to use.
        :param equipment_pool_service: The `EquipmentPoolService` service to apply approved requests with.
        """
        self._request_repository = request_repository
        self._equipment_pool_repository = equipment_pool_repository
        self._equipment_pool_service = equipment_pool_service

    def create(self, request: RequestPostSchema) -> RequestOut:
        """
        Create a new request.

        The request is checked against the current state of its pool so that requests that could never be approved are
        refused straight away. These checks are made again when the request is approved.

        :param request: The request to be created.
        :return: The created request.
        :raises MissingRecordError: If the pool doesn't exist.
        :raises NotAuthorizedError: If the officer is not authorized to be issued items from the pool.
        :raises NoAvailableItemsError: If an item is requested from a pool that has none available.
        :raises DuplicateRecordError: If the officer already has the same request pending.
        :raises ItemNotFoundError: If the item the request is about doesn't exist in the pool.
        :raises NotIssuedError: If a Return or Lost request is about an item not issued to the officer, or a
            Maintenance request is about an item issued to another officer.
        :raises InvalidTransitionError: If a Maintenance request is about an item that is neither issued nor available.
        :raises WriteConflictError: If every request number tried was taken by a concurrent create.
        """
        equipment_pool = self._equipment_pool_repository.get(request.pool_id)
        if not equipment_pool:
            raise MissingRecordError(f"No equipment pool found with ID: {request.pool_id}")

        officer = request.requested_by
        if request.request_type == RequestType.ISSUE:
            if officer.designation not in equipment_pool.authorized_designations:
                raise NotAuthorizedError(f"This equipment is not authorized for {officer.designation.value}")
            if equipment_pool.select_for_issue() is None:
                raise NoAvailableItemsError(f"No available items in pool: {equipment_pool.pool_name}")
        else:
            self._check_item_for_request(
                equipment_pool, request.request_type, request.assigned_unique_id, officer.user_id
            )

        if self._request_repository.find_pending(
            officer.user_id, request.pool_id, request.request_type, unique_id=request.assigned_unique_id
        ):
            raise DuplicateRecordError("A pending request for this equipment already exists")

        now = datetime.now(timezone.utc)

        def attempt() -> RequestOut:
            request_in = RequestIn(
                **request.model_dump(exclude={"requested_by"}),
                requested_by=utils.custodian_from_officer(officer),
                pool_name=equipment_pool.pool_name,
                request_number=self._request_repository.next_request_number(),
                status_history=[
                    StatusHistoryEntry(
                        status=RequestStatus.PENDING,
                        changed_by=officer.user_id,
                        changed_date=now,
                        notes="Request created",
                    )
                ],
            )
            return self._request_repository.create(request_in)

        # Numbering is sequential per day so a concurrent create can take the same number first
        return utils.retry_on_write_conflict(
            attempt, config.lifecycle.max_write_attempts, f"numbering a request from {officer.officer_id}"
        )

    def get(self, request_id: str) -> Optional[RequestOut]:
        """
        Retrieve a request by its ID.

        :param request_id: The ID of the request to retrieve.
        :return: The retrieved request, or `None` if not found.
        """
        return self._request_repository.get(request_id)

    def list(
        self, status: Optional[str] = None, request_type: Optional[str] = None, user_id: Optional[str] = None
    ) -> List[RequestOut]:
        """
        Retrieve a list of requests based on the provided filters.

        :param status: Status to filter requests by.
        :param request_type: Type to filter requests by.
        :param user_id: Only include requests made by the user with this ID.
        :return: List of requests or an empty list if no requests are retrieved.
        """
        return self._request_repository.list(status=status, request_type=request_type, user_id=user_id)

    def approve(self, request_id: str, approval: RequestApproveSchema) -> RequestOut:
        """
        Approve a pending request and apply it to its pool.

        The status change of the request and the change to the pool are made within one transaction, so either both
        happen or neither does. The status change only succeeds while the request is still pending, which stops the same
        request being applied twice.

        :param request_id: The ID of the request to approve.
        :param approval: Details of the approval.
        :return: The approved request.
        :raises MissingRecordError: If the request or its pool doesn't exist.
        :raises InvalidRequestStateError: If the request is not pending.
        :raises PoolLifecycleError: If the request cannot be applied to the current state of its pool.
        """
        request = self._request_repository.get(request_id)
        if not request:
            raise MissingRecordError(f"No request found with ID: {request_id}")
        if request.status != RequestStatus.PENDING:
            raise InvalidRequestStateError(f"Request {request.request_number} has already been {request.status.value}")

        def attempt() -> RequestOut:
            # Run all edits within a transaction to ensure they will all succeed or fail together
            with mongodb_client.start_session() as session:
                with session.start_transaction(
                    read_concern=TRANSACTION_READ_CONCERN, write_concern=TRANSACTION_WRITE_CONCERN
                ):
                    return self._apply_approval(request, approval, session)

        logger.info("Approving %s request %s", request.request_type.value, request.request_number)
        return utils.retry_on_write_conflict(
            attempt, config.lifecycle.max_write_attempts, f"approving request {request.request_number}"
        )

    def reject(self, request_id: str, rejection: RequestRejectSchema) -> RequestOut:
        """
        Reject a pending request.

        :param request_id: The ID of the request to reject.
        :param rejection: Details of the rejection.
        :return: The rejected request.
        :raises MissingRecordError: If the request doesn't exist.
        :raises InvalidRequestStateError: If the request is not pending.
        """
        now = datetime.now(timezone.utc)
        logger.info("Rejecting request with ID: %s", request_id)
        return self._request_repository.update_status(
            request_id,
            [RequestStatus.PENDING],
            {
                "status": RequestStatus.REJECTED,
                "processed_by": rejection.rejected_by,
                "processed_date": now,
                "admin_notes": rejection.reason,
            },
            StatusHistoryEntry(
                status=RequestStatus.REJECTED,
                changed_by=rejection.rejected_by,
                changed_date=now,
                notes=rejection.reason,
            ),
        )

    def cancel(self, request_id: str, cancellation: RequestCancelSchema) -> RequestOut:
        """
        Cancel a pending request on behalf of the officer that made it.

        :param request_id: The ID of the request to cancel.
        :param cancellation: Details of who is cancelling the request.
        :return: The cancelled request.
        :raises MissingRecordError: If the request doesn't exist.
        :raises InvalidActionError: If the request was made by someone else.
        :raises InvalidRequestStateError: If the request is not pending.
        """
        request = self._request_repository.get(request_id)
        if not request:
            raise MissingRecordError(f"No request found with ID: {request_id}")
        if request.requested_by.user_id != cancellation.user_id:
            raise InvalidActionError("Only the officer that made a request can cancel it")

        now = datetime.now(timezone.utc)
        logger.info("Cancelling request %s", request.request_number)
        return self._request_repository.update_status(
            request_id,
            [RequestStatus.PENDING],
            {"status": RequestStatus.CANCELLED},
            StatusHistoryEntry(
                status=RequestStatus.CANCELLED,
                changed_by=cancellation.user_id,
                changed_date=now,
                notes="Request cancelled by requester",
            ),
        )

    def _check_item_for_request(
        self, equipment_pool: EquipmentPoolOut, request_type: RequestType, unique_id: str, user_id: str
    ) -> None:
        """
        Check that the item a Return, Maintenance or Lost request is about can be the subject of the request.

        :param equipment_pool: The pool the item belongs to.
        :param request_type: The type of the request.
        :param unique_id: The unique ID of the item.
        :param user_id: The ID of the user that made the request.
        :raises ItemNotFoundError: If the item doesn't exist in the pool.
        :raises NotIssuedError: If a Return or Lost request is about an item not issued to the user, or a Maintenance
            request is about an item issued to someone else.
        :raises InvalidTransitionError: If a Maintenance request is about an item that is neither issued nor available.
        """
        item = equipment_pool.find_item(unique_id)
        if item is None:
            raise ItemNotFoundError(f"No item found with unique ID {unique_id} in pool {equipment_pool.pool_name}")

        if request_type == RequestType.MAINTENANCE:
            if item.status not in (ItemStatus.ISSUED, ItemStatus.AVAILABLE):
                raise InvalidTransitionError(
                    f"Cannot report maintenance for item {unique_id} with status {item.status.value}"
                )
            # Only the holder of an issued item may report a problem with it
            if item.status != ItemStatus.ISSUED:
                return

        if item.currently_issued_to is None or item.currently_issued_to.user_id != user_id:
            raise NotIssuedError(f"Item {unique_id} is not currently issued to the requesting officer")

    def _apply_approval(
        self, request: RequestOut, approval: RequestApproveSchema, session: ClientSession
    ) -> RequestOut:
        """
        Mark a request as approved and apply it to its pool within a transaction.

        Issue requests are left `Approved` with the unique ID of the issued item recorded against them, until the item
        is handed back. All other requests are `Completed` straight away, along with the Issue request the item was
        held under when they end its custody.

        :param request: The request to approve.
        :param approval: Details of the approval.
        :param session: PyMongo ClientSession of the transaction
        :return: The approved request.
        """
        now = datetime.now(timezone.utc)
        final_status = RequestStatus.APPROVED if request.request_type == RequestType.ISSUE else RequestStatus.COMPLETED
        update = {
            "status": final_status,
            "processed_by": approval.approved_by,
            "processed_date": now,
            "approved_date": now,
            "admin_notes": approval.notes,
        }
        if final_status == RequestStatus.COMPLETED:
            update["completed_date"] = now

        # Moving the request out of pending first means a second approval fails before touching the pool
        self._request_repository.update_status(
            request.id,
            [RequestStatus.PENDING],
            update,
            StatusHistoryEntry(
                status=final_status, changed_by=approval.approved_by, changed_date=now, notes=approval.notes
            ),
            session=session,
        )

        requester = request.requested_by
        if request.request_type == RequestType.ISSUE:
            _, item = self._equipment_pool_service.issue(
                request.pool_id, requester, purpose=request.reason, issued_by=approval.approved_by, session=session
            )
            return self._request_repository.update(
                request.id, {"assigned_unique_id": item.unique_id}, session=session
            )

        equipment_pool = self._equipment_pool_repository.get(request.pool_id, session=session)
        if not equipment_pool:
            raise MissingRecordError(f"No equipment pool found with ID: {request.pool_id}")
        self._check_item_for_request(
            equipment_pool, request.request_type, request.assigned_unique_id, requester.user_id
        )
        item = equipment_pool.find_item(request.assigned_unique_id)
        holder_user_id = item.currently_issued_to.user_id if item.currently_issued_to else None

        if request.request_type == RequestType.RETURN:
            self._equipment_pool_service.return_item(
                request.pool_id,
                request.assigned_unique_id,
                condition=approval.condition or request.condition or DEFAULT_RETURN_CONDITION,
                remarks=approval.remarks or request.reason,
                returned_to=approval.approved_by,
                session=session,
            )
        elif request.request_type == RequestType.MAINTENANCE:
            self._equipment_pool_service.report_maintenance(
                request.pool_id,
                request.assigned_unique_id,
                request.reason,
                condition=approval.condition or request.condition,
                reported_by=requester.user_id,
                session=session,
            )
        else:
            fir = FIRDetails(
                fir_number=request.fir_number,
                fir_date=request.fir_date,
                police_station=request.police_station,
                description=request.incident_description,
            )
            self._equipment_pool_service.report_lost(
                request.pool_id, request.assigned_unique_id, fir, reported_by=requester.user_id, session=session
            )

        if holder_user_id is not None:
            self._complete_issue_request(holder_user_id, request, approval.approved_by, now, session)

        return self._request_repository.get(request.id, session=session)

    def _complete_issue_request(
        self, holder_user_id: str, request: RequestOut, completed_by: str, now: datetime, session: ClientSession
    ) -> None:
        """
        Complete the Issue request an item was held under once its custody has ended.

        :param holder_user_id: The ID of the user that held the item.
        :param request: The request that ended the custody of the item.
        :param completed_by: The ID of the user that approved the request.
        :param now: The time the request was approved.
        :param session: PyMongo ClientSession of the transaction
        """
        issue_request = self._request_repository.find_active_issue(
            holder_user_id, request.pool_id, request.assigned_unique_id, session=session
        )
        if issue_request is None:
            logger.info("No approved Issue request found for item %s", request.assigned_unique_id)
            return

        logger.info("Completing Issue request %s", issue_request.request_number)
        self._request_repository.update_status(
            issue_request.id,
            [RequestStatus.APPROVED],
            {"status": RequestStatus.COMPLETED, "completed_date": now},
            StatusHistoryEntry(
                status=RequestStatus.COMPLETED,
                changed_by=completed_by,
                changed_date=now,
                notes=f"Custody ended by {request.request_type.value} request {request.request_number}",
            ),
            session=session,
        )
