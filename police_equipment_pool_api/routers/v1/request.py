"""
Module for providing an API router which defines routes for managing officer requests using the `RequestService`
service.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from police_equipment_pool_api.core.exceptions import (
    DuplicateRecordError,
    InvalidActionError,
    InvalidObjectIdError,
    InvalidRequestStateError,
    MissingRecordError,
    PoolLifecycleError,
    WriteConflictError,
)
from police_equipment_pool_api.models.request import RequestStatus, RequestType
from police_equipment_pool_api.routers.v1 import utils
from police_equipment_pool_api.schemas.request import (
    RequestApproveSchema,
    RequestCancelSchema,
    RequestPostSchema,
    RequestRejectSchema,
    RequestSchema,
)
from police_equipment_pool_api.services.request import RequestService

logger = logging.getLogger()

router = APIRouter(prefix="/v1/requests", tags=["requests"])

RequestServiceDep = Annotated[RequestService, Depends(RequestService)]

REQUEST_NOT_FOUND_MESSAGE = "Request not found"

RequestIdPath = Annotated[str, Path(description="The ID of the request")]


@router.post(
    path="",
    summary="Create a new request",
    response_description="The created request",
    status_code=status.HTTP_201_CREATED,
)
def create_request(request: RequestPostSchema, request_service: RequestServiceDep) -> RequestSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Creating a new %s request", request.request_type.value)
    logger.debug("Request data: %s", request)
    try:
        request = request_service.create(request)
        return RequestSchema(**request.model_dump())
    except (MissingRecordError, InvalidObjectIdError) as exc:
        message = "The specified equipment pool does not exist"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=message) from exc
    except DuplicateRecordError as exc:
        message = "You already have a pending request for this equipment"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.get(path="", summary="Get requests", response_description="List of requests")
def get_requests(
    request_service: RequestServiceDep,
    request_status: Annotated[
        Optional[RequestStatus], Query(alias="status", description="Filter requests by status")
    ] = None,
    request_type: Annotated[Optional[RequestType], Query(description="Filter requests by type")] = None,
    user_id: Annotated[Optional[str], Query(description="Filter requests by the user that made them")] = None,
) -> List[RequestSchema]:
    # pylint: disable=missing-function-docstring
    logger.info("Getting requests")
    if request_status:
        logger.debug("Status filter: '%s'", request_status)
    if request_type:
        logger.debug("Request type filter: '%s'", request_type)
    if user_id:
        logger.debug("User ID filter: '%s'", user_id)

    requests = request_service.list(request_status, request_type, user_id)
    return [RequestSchema(**request.model_dump()) for request in requests]


@router.get(path="/{request_id}", summary="Get a request by ID", response_description="Single request")
def get_request(request_id: RequestIdPath, request_service: RequestServiceDep) -> RequestSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting request with ID: %s", request_id)
    try:
        request = request_service.get(request_id)
        if not request:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=REQUEST_NOT_FOUND_MESSAGE)
        return RequestSchema(**request.model_dump())
    except InvalidObjectIdError as exc:
        logger.exception("The ID is not a valid ObjectId value")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=REQUEST_NOT_FOUND_MESSAGE) from exc


@router.post(
    path="/{request_id}/approve",
    summary="Approve a pending request and apply it to its equipment pool",
    response_description="The approved request",
)
def approve_request(
    request_id: RequestIdPath, approval: RequestApproveSchema, request_service: RequestServiceDep
) -> RequestSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Approving request with ID: %s", request_id)
    logger.debug("Approval data: %s", approval)
    try:
        request = request_service.approve(request_id, approval)
        return RequestSchema(**request.model_dump())
    except (MissingRecordError, InvalidObjectIdError) as exc:
        message = "Request or its equipment pool not found"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message) from exc
    except InvalidRequestStateError as exc:
        message = "Only pending requests can be approved"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=message) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{request_id}/reject",
    summary="Reject a pending request",
    response_description="The rejected request",
)
def reject_request(
    request_id: RequestIdPath, rejection: RequestRejectSchema, request_service: RequestServiceDep
) -> RequestSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Rejecting request with ID: %s", request_id)
    logger.debug("Rejection data: %s", rejection)
    try:
        request = request_service.reject(request_id, rejection)
        return RequestSchema(**request.model_dump())
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(REQUEST_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=REQUEST_NOT_FOUND_MESSAGE) from exc
    except InvalidRequestStateError as exc:
        message = "Only pending requests can be rejected"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=message) from exc


@router.post(
    path="/{request_id}/cancel",
    summary="Cancel a pending request",
    response_description="The cancelled request",
)
def cancel_request(
    request_id: RequestIdPath, cancellation: RequestCancelSchema, request_service: RequestServiceDep
) -> RequestSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Cancelling request with ID: %s", request_id)
    try:
        request = request_service.cancel(request_id, cancellation)
        return RequestSchema(**request.model_dump())
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(REQUEST_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=REQUEST_NOT_FOUND_MESSAGE) from exc
    except InvalidActionError as exc:
        message = "Only the officer that made the request can cancel it"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message) from exc
    except InvalidRequestStateError as exc:
        message = "Only pending requests can be cancelled"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=message) from exc
