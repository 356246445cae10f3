"""
Module for providing a service for managing equipment pools and moving their items through their lifecycle using the
`EquipmentPoolRepo` repository.
"""

import logging
from typing import Annotated, Callable, List, Optional, Tuple

from fastapi import Depends
from pymongo.client_session import ClientSession

from police_equipment_pool_api.core.config import config
from police_equipment_pool_api.core.exceptions import ItemNotFoundError, MissingRecordError
from police_equipment_pool_api.models.equipment_pool import (
    Custodian,
    EquipmentPoolBase,
    EquipmentPoolIn,
    EquipmentPoolOut,
    FIRDetails,
    ItemCondition,
    ItemRecord,
    ItemStatus,
    ReportedCondition,
)
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo
from police_equipment_pool_api.schemas.equipment_pool import EquipmentPoolPostSchema
from police_equipment_pool_api.services import pool_lifecycle, utils

logger = logging.getLogger()

# An operation of `pool_lifecycle` with everything but the pool already bound
PoolOperation = Callable[[EquipmentPoolBase], ItemRecord]


class EquipmentPoolService:
    """
    Service for managing equipment pools.
    """

    def __init__(
        self, equipment_pool_repository: Annotated[EquipmentPoolRepo, Depends(EquipmentPoolRepo)]
    ) -> None:
        """
        Initialise the `EquipmentPoolService` with an `EquipmentPoolRepo` repository.

        :param equipment_pool_repository: The `EquipmentPoolRepo` repository to use.
        """
        self._equipment_pool_repository = equipment_pool_repository

    def create(self, equipment_pool: EquipmentPoolPostSchema) -> EquipmentPoolOut:
        """
        Create a new equipment pool along with its items.

        Items are given sequential unique IDs built from the prefix of the pool, start out available in excellent
        condition and are stored at the location of the pool.

        :param equipment_pool: The equipment pool to be created.
        :return: The created equipment pool.
        """
        unique_ids = EquipmentPoolBase.generate_unique_ids(equipment_pool.prefix, 1, equipment_pool.quantity)
        items = [ItemRecord(unique_id=unique_id, location=equipment_pool.location) for unique_id in unique_ids]

        equipment_pool_in = EquipmentPoolIn(
            **equipment_pool.model_dump(exclude={"quantity"}), items=items, total_quantity=len(items)
        )
        equipment_pool_in.recompute_counts()

        return self._equipment_pool_repository.create(equipment_pool_in)

    def get(self, pool_id: str) -> Optional[EquipmentPoolOut]:
        """
        Retrieve an equipment pool by its ID.

        :param pool_id: The ID of the equipment pool to retrieve.
        :return: The retrieved equipment pool, or `None` if not found.
        """
        return self._equipment_pool_repository.get(pool_id)

    def list(
        self, category: Optional[str] = None, designation: Optional[str] = None, search: Optional[str] = None
    ) -> List[EquipmentPoolOut]:
        """
        Retrieve a list of equipment pools based on the provided filters.

        :param category: Category to filter pools by.
        :param designation: Only include pools authorized for this designation.
        :param search: Text to search for in the name, model or manufacturer of the pools.
        :return: List of equipment pools or an empty list if no pools are retrieved.
        """
        return self._equipment_pool_repository.list(category=category, designation=designation, search=search)

    def delete(self, pool_id: str) -> None:
        """
        Delete an equipment pool, along with all of its items, by its ID.

        :param pool_id: The ID of the equipment pool to delete.
        """
        return self._equipment_pool_repository.delete(pool_id)

    def get_item(self, pool_id: str, unique_id: str) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Retrieve a single item, including all of its history, from an equipment pool.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :raises MissingRecordError: If the equipment pool doesn't exist.
        :raises ItemNotFoundError: If the item doesn't exist in the pool.
        :return: The equipment pool and the item.
        """
        equipment_pool = self._get_existing(pool_id)
        item = equipment_pool.find_item(unique_id)
        if item is None:
            raise ItemNotFoundError(f"No item found with unique ID {unique_id} in pool {equipment_pool.pool_name}")
        return equipment_pool, item

    def issue(
        self,
        pool_id: str,
        custodian: Custodian,
        purpose: Optional[str] = None,
        issued_by: Optional[str] = None,
        session: ClientSession = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Issue the best available item of an equipment pool to an officer.

        :param pool_id: The ID of the equipment pool.
        :param custodian: The officer receiving the item.
        :param purpose: Why the item is being issued.
        :param issued_by: The ID of the user issuing the item.
        :param session: PyMongo ClientSession to use for database operations (the caller is then responsible for any
                        retries)
        :return: The updated equipment pool and the issued item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.issue(pool, custodian, purpose, issued_by),
            f"issuing an item from pool {pool_id}",
            session=session,
        )

    def return_item(
        self,
        pool_id: str,
        unique_id: str,
        condition: Optional[ReportedCondition] = None,
        remarks: Optional[str] = None,
        returned_to: Optional[str] = None,
        session: ClientSession = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Return an issued item to its equipment pool.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param condition: The condition the item was returned in.
        :param remarks: Any remarks about the return.
        :param returned_to: The ID of the user receiving the item.
        :param session: PyMongo ClientSession to use for database operations
        :return: The updated equipment pool and the returned item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.return_item(pool, unique_id, condition, remarks, returned_to),
            f"returning item {unique_id}",
            session=session,
        )

    def report_maintenance(
        self,
        pool_id: str,
        unique_id: str,
        reason: str,
        condition: Optional[ReportedCondition] = None,
        reported_by: Optional[str] = None,
        session: ClientSession = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Send an item to maintenance because a problem has been reported with it.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param reason: The problem reported.
        :param condition: The condition reported.
        :param reported_by: The ID of the user reporting the problem.
        :param session: PyMongo ClientSession to use for database operations
        :return: The updated equipment pool and the item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.report_maintenance(pool, unique_id, reason, condition, reported_by),
            f"reporting maintenance for item {unique_id}",
            session=session,
        )

    def complete_repair(
        self,
        pool_id: str,
        unique_id: str,
        action_description: str,
        new_condition: ItemCondition,
        cost: Optional[float] = None,
        fixed_by: Optional[str] = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Complete the repair of an item in maintenance.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param action_description: What was done to fix the item.
        :param new_condition: The condition after repair.
        :param cost: The cost of the repair.
        :param fixed_by: Who carried out the repair.
        :return: The updated equipment pool and the repaired item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.complete_repair(
                pool, unique_id, action_description, new_condition, cost, fixed_by
            ),
            f"completing repair of item {unique_id}",
        )

    def report_lost(
        self,
        pool_id: str,
        unique_id: str,
        fir: FIRDetails,
        reported_by: Optional[str] = None,
        session: ClientSession = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Record the loss of an issued item.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param fir: Details of the First Information Report filed for the loss.
        :param reported_by: The ID of the user reporting the loss.
        :param session: PyMongo ClientSession to use for database operations
        :return: The updated equipment pool and the item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.report_lost(pool, unique_id, fir, reported_by),
            f"reporting loss of item {unique_id}",
            session=session,
        )

    def write_off_lost(
        self, pool_id: str, unique_id: str, notes: str, resolved_by: Optional[str] = None
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Write off an item that is pending a loss investigation.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param notes: The final report notes.
        :param resolved_by: The ID of the user writing off the item.
        :return: The updated equipment pool and the item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.write_off_lost(pool, unique_id, notes, resolved_by),
            f"writing off item {unique_id}",
        )

    def recover(
        self,
        pool_id: str,
        unique_id: str,
        notes: str,
        condition: ItemCondition,
        resolved_by: Optional[str] = None,
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Record the recovery of an item that is pending a loss investigation.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param notes: How the item was recovered.
        :param condition: The condition the item was recovered in.
        :param resolved_by: The ID of the user recording the recovery.
        :return: The updated equipment pool and the item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.recover(pool, unique_id, notes, condition, resolved_by),
            f"recovering item {unique_id}",
        )

    def mark_out_of_service(
        self, pool_id: str, unique_id: str, status: ItemStatus, notes: Optional[str] = None
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Take an item out of service by marking it as damaged or retired.

        :param pool_id: The ID of the equipment pool.
        :param unique_id: The unique ID of the item.
        :param status: The new status of the item.
        :param notes: Why the item is being taken out of service.
        :return: The updated equipment pool and the item.
        """
        return self._apply(
            pool_id,
            lambda pool: pool_lifecycle.mark_out_of_service(pool, unique_id, status, notes),
            f"taking item {unique_id} out of service",
        )

    def _get_existing(self, pool_id: str, session: ClientSession = None) -> EquipmentPoolOut:
        """
        Retrieve an equipment pool that must exist.

        :param pool_id: The ID of the equipment pool.
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the equipment pool doesn't exist.
        :return: The equipment pool.
        """
        equipment_pool = self._equipment_pool_repository.get(pool_id, session=session)
        if not equipment_pool:
            raise MissingRecordError(f"No equipment pool found with ID: {pool_id}")
        return equipment_pool

    def _apply(
        self, pool_id: str, operation: PoolOperation, description: str, session: ClientSession = None
    ) -> Tuple[EquipmentPoolOut, ItemRecord]:
        """
        Apply a lifecycle operation to a freshly read copy of an equipment pool and write the mutated item back.

        Without a session the whole read, mutate and write is repeated when another writer modified the pool in the
        meantime. With a session a conflict aborts the transaction, so it is left for the caller to retry.

        :param pool_id: The ID of the equipment pool.
        :param operation: The lifecycle operation to apply.
        :param description: Description of the operation (used for logging).
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the equipment pool doesn't exist.
        :raises WriteConflictError: If the pool kept being modified by other writers.
        :return: The updated equipment pool and the mutated item.
        """

        def attempt() -> Tuple[EquipmentPoolOut, ItemRecord]:
            equipment_pool = self._get_existing(pool_id, session=session)
            item = operation(equipment_pool)
            self._equipment_pool_repository.update_item(
                equipment_pool, equipment_pool.find_item_index(item.unique_id), session=session
            )
            return equipment_pool, item

        logger.info("Applying %s", description)
        if session is not None:
            return attempt()
        return utils.retry_on_write_conflict(attempt, config.lifecycle.max_write_attempts, description)
