"""
Module for providing a repository for managing equipment pools in a MongoDB database.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, OperationFailure

from police_equipment_pool_api.core.custom_object_id import CustomObjectId
from police_equipment_pool_api.core.database import DatabaseDep
from police_equipment_pool_api.core.exceptions import DuplicateRecordError, MissingRecordError, WriteConflictError
from police_equipment_pool_api.models.equipment_pool import EquipmentPoolIn, EquipmentPoolOut
from police_equipment_pool_api.repositories import utils

logger = logging.getLogger()


class EquipmentPoolRepo:
    """
    Repository for managing equipment pools in a MongoDB database.
    """

    def __init__(self, database: DatabaseDep) -> None:
        """
        Initialize the `EquipmentPoolRepo` with a MongoDB database instance.

        :param database: The database to use.
        """
        self._database = database
        self._equipment_pools_collection: Collection = self._database.equipment_pools

    def create(self, equipment_pool: EquipmentPoolIn, session: ClientSession = None) -> EquipmentPoolOut:
        """
        Create a new equipment pool in a MongoDB database.

        :param equipment_pool: The equipment pool to be created.
        :param session: PyMongo ClientSession to use for database operations
        :return: The created equipment pool.
        :raises DuplicateRecordError: If a pool with the same name or prefix already exists.
        """
        if self._is_duplicate_pool(equipment_pool.pool_name, equipment_pool.prefix, session=session):
            raise DuplicateRecordError("Duplicate equipment pool found")

        logger.info("Inserting the new equipment pool into the database")
        try:
            result = self._equipment_pools_collection.insert_one(equipment_pool.model_dump(), session=session)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError("Duplicate equipment pool found") from exc

        equipment_pool = self.get(str(result.inserted_id), session=session)
        return equipment_pool

    def get(self, pool_id: str, session: ClientSession = None) -> Optional[EquipmentPoolOut]:
        """
        Retrieve an equipment pool by its ID from a MongoDB database.

        :param pool_id: The ID of the equipment pool to retrieve.
        :param session: PyMongo ClientSession to use for database operations
        :return: The retrieved equipment pool, or `None` if not found.
        """
        pool_id = CustomObjectId(pool_id)
        logger.info("Retrieving equipment pool with ID: %s from the database", pool_id)
        equipment_pool = self._equipment_pools_collection.find_one({"_id": pool_id}, session=session)
        if equipment_pool:
            return EquipmentPoolOut(**equipment_pool)
        return None

    def list(
        self,
        category: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
        item_status: Optional[str] = None,
        officer_id: Optional[str] = None,
        session: ClientSession = None,
    ) -> List[EquipmentPoolOut]:
        """
        Retrieve equipment pools from a MongoDB database, ordered by name.

        :param category: Category to filter pools by.
        :param designation: Only include pools authorized for this designation.
        :param search: Text to search for in the name, model or manufacturer of the pools.
        :param item_status: Only include pools with at least one item in this status.
        :param officer_id: Only include pools with at least one item that has been issued to this officer.
        :param session: PyMongo ClientSession to use for database operations
        :return: List of equipment pools or an empty list if no pools are retrieved
        """
        query = utils.pool_list_query(category, designation, search, item_status, officer_id)
        equipment_pools = self._equipment_pools_collection.find(query, session=session).sort("pool_name", 1)
        return [EquipmentPoolOut(**equipment_pool) for equipment_pool in equipment_pools]

    def update_item(self, equipment_pool: EquipmentPoolOut, item_index: int, session: ClientSession = None) -> None:
        """
        Write a single mutated item of an equipment pool back to the database along with the recomputed counts.

        The write only succeeds when the stored pool still has the version the pool was read at, the version is then
        incremented. Only the item at `item_index` is written, so its siblings are left untouched.

        :param equipment_pool: The equipment pool as read (with its `version`), containing the mutated item.
        :param item_index: The position of the mutated item within the items of the pool.
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the equipment pool doesn't exist.
        :raises WriteConflictError: If the equipment pool was modified since it was read.
        """
        pool_id = CustomObjectId(equipment_pool.id)
        item = equipment_pool.items[item_index]

        logger.info(
            "Updating item %s of equipment pool with ID: %s at version %s in the database",
            item.unique_id,
            pool_id,
            equipment_pool.version,
        )
        try:
            result = self._equipment_pools_collection.update_one(
                {"_id": pool_id, "version": equipment_pool.version},
                {
                    "$set": {
                        f"items.{item_index}": item.model_dump(),
                        "total_quantity": len(equipment_pool.items),
                        "available_count": equipment_pool.available_count,
                        "issued_count": equipment_pool.issued_count,
                        "maintenance_count": equipment_pool.maintenance_count,
                        "damaged_count": equipment_pool.damaged_count,
                        "modified_time": datetime.now(timezone.utc),
                    },
                    "$inc": {"version": 1},
                },
                session=session,
            )
        except OperationFailure as exc:
            # Concurrent writes inside transactions are reported by the server rather than by a missed match
            if exc.has_error_label("TransientTransactionError"):
                raise WriteConflictError(f"Equipment pool with ID: {pool_id} was modified by another writer") from exc
            raise

        if result.matched_count == 0:
            if self._equipment_pools_collection.find_one({"_id": pool_id}, {"_id": 1}, session=session) is None:
                raise MissingRecordError(f"No equipment pool found with ID: {pool_id}")
            raise WriteConflictError(f"Equipment pool with ID: {pool_id} was modified by another writer")

    def delete(self, pool_id: str, session: ClientSession = None) -> None:
        """
        Delete an equipment pool, along with all of its items, by its ID from a MongoDB database.

        :param pool_id: The ID of the equipment pool to delete.
        :param session: PyMongo ClientSession to use for database operations
        :raises MissingRecordError: If the equipment pool doesn't exist.
        """
        pool_id = CustomObjectId(pool_id)
        logger.info("Deleting equipment pool with ID: %s from the database", pool_id)
        result = self._equipment_pools_collection.delete_one({"_id": pool_id}, session=session)
        if result.deleted_count == 0:
            raise MissingRecordError(f"No equipment pool found with ID: {str(pool_id)}")

    def count_items_by_status(self, session: ClientSession = None) -> Dict[str, int]:
        """
        Count the items in each status across all equipment pools.

        :param session: PyMongo ClientSession to use for database operations
        :return: Dictionary mapping each status found to the number of items with it.
        """
        logger.info("Counting the items in each status across all equipment pools")
        result = self._equipment_pools_collection.aggregate(
            [
                {"$unwind": "$items"},
                {"$group": {"_id": "$items.status", "count": {"$sum": 1}}},
            ],
            session=session,
        )
        return {group["_id"]: group["count"] for group in result}

    def count_items_by_category(self, session: ClientSession = None) -> Dict[str, int]:
        """
        Count the items of the equipment pools in each category.

        :param session: PyMongo ClientSession to use for database operations
        :return: Dictionary mapping each category found to the number of items of pools in it.
        """
        logger.info("Counting the items in each category across all equipment pools")
        result = self._equipment_pools_collection.aggregate(
            [{"$group": {"_id": "$category", "count": {"$sum": {"$size": "$items"}}}}],
            session=session,
        )
        return {group["_id"]: group["count"] for group in result}

    def count(self, session: ClientSession = None) -> int:
        """
        Count the equipment pools in the database.

        :param session: PyMongo ClientSession to use for database operations
        :return: The number of equipment pools.
        """
        return self._equipment_pools_collection.count_documents({}, session=session)

    def repair_stored_counts(self, session: ClientSession = None) -> int:
        """
        Bring every stored equipment pool back in line with its items.

        Legacy item statuses and maintenance states are normalised and the stored counts recomputed from the items.
        Documents are read raw rather than through `EquipmentPoolOut` so that pools the models would refuse can still be
        repaired. Each pool is only written if something changed, guarded by its version like any other write.

        :param session: PyMongo ClientSession to use for database operations
        :return: The number of equipment pools that were repaired.
        """
        logger.info("Repairing the stored counts of all equipment pools")
        repaired = 0
        for document in self._equipment_pools_collection.find({}, session=session):
            items = document.get("items", [])
            items_changed = [utils.normalise_item_document(item) for item in items]
            counts = utils.compute_pool_counts(items)

            if not any(items_changed) and all(document.get(field) == value for field, value in counts.items()):
                continue

            logger.info("Repairing equipment pool with ID: %s", document["_id"])
            logger.debug("Recomputed counts: %s", counts)
            result = self._equipment_pools_collection.update_one(
                {"_id": document["_id"], "version": document.get("version", 0)},
                {
                    "$set": {"items": items, **counts, "modified_time": datetime.now(timezone.utc)},
                    "$inc": {"version": 1},
                },
                session=session,
            )
            if result.matched_count == 0:
                logger.warning("Equipment pool with ID: %s was modified while being repaired", document["_id"])
                continue
            repaired += 1
        return repaired

    def _is_duplicate_pool(self, pool_name: str, prefix: str, session: ClientSession = None) -> bool:
        """
        Check if an equipment pool with the same name or item prefix already exists.

        :param pool_name: The name of the pool to check for duplicates.
        :param prefix: The item prefix of the pool to check for duplicates.
        :param session: PyMongo ClientSession to use for database operations
        :return: `True` if a duplicate pool is found, `False` otherwise
        """
        logger.info("Checking if equipment pool with name '%s' or prefix '%s' already exists", pool_name, prefix)
        equipment_pool = self._equipment_pools_collection.find_one(
            {"$or": [{"pool_name": pool_name}, {"prefix": prefix}]}, session=session
        )
        return equipment_pool is not None
