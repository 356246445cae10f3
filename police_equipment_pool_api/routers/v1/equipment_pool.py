"""
Module for providing an API router which defines routes for managing equipment pools and the lifecycle of their items
using the `EquipmentPoolService` service.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from police_equipment_pool_api.core.exceptions import (
    DuplicateRecordError,
    InvalidObjectIdError,
    MissingRecordError,
    PoolLifecycleError,
    WriteConflictError,
)
from police_equipment_pool_api.models.equipment_pool import Designation, EquipmentPoolOut, PoolCategory
from police_equipment_pool_api.routers.v1 import utils
from police_equipment_pool_api.schemas.equipment_pool import (
    EquipmentPoolPostSchema,
    EquipmentPoolSchema,
    IssuePostSchema,
    IssueSchema,
    ItemHistorySchema,
    ItemTransitionSchema,
    OutOfServicePostSchema,
    RecoverPostSchema,
    RepairPostSchema,
    ReturnPostSchema,
    ReturnSchema,
    WriteOffPostSchema,
)
from police_equipment_pool_api.services.equipment_pool import EquipmentPoolService
from police_equipment_pool_api.services.utils import custodian_from_officer

logger = logging.getLogger()

router = APIRouter(prefix="/v1/pools", tags=["equipment pools"])

EquipmentPoolServiceDep = Annotated[EquipmentPoolService, Depends(EquipmentPoolService)]

POOL_NOT_FOUND_MESSAGE = "Equipment pool not found"

PoolIdPath = Annotated[str, Path(description="The ID of the equipment pool")]
UniqueIdPath = Annotated[str, Path(description="The unique ID of the item e.g. GLK-001")]


def _pool_schema(equipment_pool: EquipmentPoolOut) -> EquipmentPoolSchema:
    return EquipmentPoolSchema(**equipment_pool.model_dump(), utilization_rate=equipment_pool.utilization_rate)


@router.post(
    path="",
    summary="Create a new equipment pool",
    response_description="The created equipment pool",
    status_code=status.HTTP_201_CREATED,
)
def create_equipment_pool(
    equipment_pool: EquipmentPoolPostSchema, equipment_pool_service: EquipmentPoolServiceDep
) -> EquipmentPoolSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Creating a new equipment pool")
    logger.debug("Equipment pool data: %s", equipment_pool)
    try:
        equipment_pool = equipment_pool_service.create(equipment_pool)
        return _pool_schema(equipment_pool)
    except DuplicateRecordError as exc:
        message = "An equipment pool with the same name or prefix already exists"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message) from exc


@router.get(path="", summary="Get equipment pools", response_description="List of equipment pools")
def get_equipment_pools(
    equipment_pool_service: EquipmentPoolServiceDep,
    category: Annotated[Optional[PoolCategory], Query(description="Filter equipment pools by category")] = None,
    designation: Annotated[
        Optional[Designation], Query(description="Filter equipment pools by an authorized designation")
    ] = None,
    search: Annotated[
        Optional[str], Query(description="Search equipment pools by name, model or manufacturer")
    ] = None,
) -> List[EquipmentPoolSchema]:
    # pylint: disable=missing-function-docstring
    logger.info("Getting equipment pools")
    if category:
        logger.debug("Category filter: '%s'", category)
    if designation:
        logger.debug("Designation filter: '%s'", designation)
    if search:
        logger.debug("Search filter: '%s'", search)

    equipment_pools = equipment_pool_service.list(category, designation, search)
    return [_pool_schema(equipment_pool) for equipment_pool in equipment_pools]


@router.get(path="/{pool_id}", summary="Get an equipment pool by ID", response_description="Single equipment pool")
def get_equipment_pool(pool_id: PoolIdPath, equipment_pool_service: EquipmentPoolServiceDep) -> EquipmentPoolSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting equipment pool with ID: %s", pool_id)
    try:
        equipment_pool = equipment_pool_service.get(pool_id)
        if not equipment_pool:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE)
        return _pool_schema(equipment_pool)
    except InvalidObjectIdError as exc:
        logger.exception("The ID is not a valid ObjectId value")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc


@router.delete(
    path="/{pool_id}",
    summary="Delete an equipment pool by ID",
    response_description="Equipment pool deleted successfully",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_equipment_pool(pool_id: PoolIdPath, equipment_pool_service: EquipmentPoolServiceDep) -> None:
    # pylint: disable=missing-function-docstring
    logger.info("Deleting equipment pool with ID: %s", pool_id)
    try:
        equipment_pool_service.delete(pool_id)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc


@router.get(
    path="/{pool_id}/items/{unique_id}/history",
    summary="Get the history of an item",
    response_description="The usage, maintenance and loss history of the item",
)
def get_item_history(
    pool_id: PoolIdPath, unique_id: UniqueIdPath, equipment_pool_service: EquipmentPoolServiceDep
) -> ItemHistorySchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting history of item %s in equipment pool with ID: %s", unique_id, pool_id)
    try:
        equipment_pool, item = equipment_pool_service.get_item(pool_id, unique_id)
        return ItemHistorySchema(**item.model_dump(), pool_id=equipment_pool.id, pool_name=equipment_pool.pool_name)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except PoolLifecycleError as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/issue",
    summary="Issue an item from an equipment pool to an officer",
    response_description="The issued item",
)
def issue_item(
    pool_id: PoolIdPath, issue: IssuePostSchema, equipment_pool_service: EquipmentPoolServiceDep
) -> IssueSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Issuing an item from equipment pool with ID: %s", pool_id)
    logger.debug("Issue data: %s", issue)
    try:
        equipment_pool, item = equipment_pool_service.issue(
            pool_id, custodian_from_officer(issue), purpose=issue.purpose, issued_by=issue.issued_by
        )
        return IssueSchema(
            unique_id=item.unique_id,
            issued_date=item.currently_issued_to.issued_date,
            available_count=equipment_pool.available_count,
        )
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/return",
    summary="Return an issued item to its equipment pool",
    response_description="The returned item",
)
def return_item(
    pool_id: PoolIdPath, item_return: ReturnPostSchema, equipment_pool_service: EquipmentPoolServiceDep
) -> ReturnSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Returning item %s to equipment pool with ID: %s", item_return.unique_id, pool_id)
    logger.debug("Return data: %s", item_return)
    try:
        equipment_pool, item = equipment_pool_service.return_item(
            pool_id,
            item_return.unique_id,
            condition=item_return.condition,
            remarks=item_return.remarks,
            returned_to=item_return.returned_to,
        )
        return ReturnSchema(
            unique_id=item.unique_id,
            days_used=item.usage_history[-1].days_used if item.usage_history else None,
            condition=item.condition,
            status=item.status,
            available_count=equipment_pool.available_count,
        )
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/items/{unique_id}/repair",
    summary="Complete the repair of an item in maintenance",
    response_description="The new status of the item",
)
def complete_repair(
    pool_id: PoolIdPath,
    unique_id: UniqueIdPath,
    repair: RepairPostSchema,
    equipment_pool_service: EquipmentPoolServiceDep,
) -> ItemTransitionSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Completing repair of item %s in equipment pool with ID: %s", unique_id, pool_id)
    logger.debug("Repair data: %s", repair)
    try:
        _, item = equipment_pool_service.complete_repair(
            pool_id, unique_id, repair.action_description, repair.new_condition, repair.cost, repair.fixed_by
        )
        return ItemTransitionSchema(unique_id=item.unique_id, new_status=item.status)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/items/{unique_id}/write-off",
    summary="Write off an item that was reported lost",
    response_description="The new status of the item",
)
def write_off_lost_item(
    pool_id: PoolIdPath,
    unique_id: UniqueIdPath,
    write_off: WriteOffPostSchema,
    equipment_pool_service: EquipmentPoolServiceDep,
) -> ItemTransitionSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Writing off item %s in equipment pool with ID: %s", unique_id, pool_id)
    logger.debug("Write off data: %s", write_off)
    try:
        _, item = equipment_pool_service.write_off_lost(
            pool_id, unique_id, write_off.notes, resolved_by=write_off.resolved_by
        )
        return ItemTransitionSchema(unique_id=item.unique_id, new_status=item.status)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/items/{unique_id}/recover",
    summary="Record the recovery of an item that was reported lost",
    response_description="The new status of the item",
)
def recover_lost_item(
    pool_id: PoolIdPath,
    unique_id: UniqueIdPath,
    recovery: RecoverPostSchema,
    equipment_pool_service: EquipmentPoolServiceDep,
) -> ItemTransitionSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Recovering item %s in equipment pool with ID: %s", unique_id, pool_id)
    logger.debug("Recovery data: %s", recovery)
    try:
        _, item = equipment_pool_service.recover(
            pool_id, unique_id, recovery.notes, recovery.condition, resolved_by=recovery.resolved_by
        )
        return ItemTransitionSchema(unique_id=item.unique_id, new_status=item.status)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc


@router.post(
    path="/{pool_id}/items/{unique_id}/out-of-service",
    summary="Mark an item as damaged or retired",
    response_description="The new status of the item",
)
def mark_item_out_of_service(
    pool_id: PoolIdPath,
    unique_id: UniqueIdPath,
    out_of_service: OutOfServicePostSchema,
    equipment_pool_service: EquipmentPoolServiceDep,
) -> ItemTransitionSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Taking item %s in equipment pool with ID: %s out of service", unique_id, pool_id)
    logger.debug("Out of service data: %s", out_of_service)
    try:
        _, item = equipment_pool_service.mark_out_of_service(
            pool_id, unique_id, out_of_service.status, notes=out_of_service.notes
        )
        return ItemTransitionSchema(unique_id=item.unique_id, new_status=item.status)
    except (MissingRecordError, InvalidObjectIdError) as exc:
        logger.exception(POOL_NOT_FOUND_MESSAGE)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POOL_NOT_FOUND_MESSAGE) from exc
    except (PoolLifecycleError, WriteConflictError) as exc:
        raise utils.lifecycle_http_exception(exc) from exc
