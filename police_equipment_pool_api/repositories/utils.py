"""
Utility methods used in the repositories
"""

import logging
import re
from typing import Optional

from police_equipment_pool_api.models.equipment_pool import ItemStatus, MaintenanceKind

logger = logging.getLogger()

# Fields of a pool searched by the free text `search` filter
POOL_SEARCH_FIELDS = ["pool_name", "model", "manufacturer"]

# Stored count fields and the item status each one counts
POOL_COUNT_FIELDS = {
    "available_count": ItemStatus.AVAILABLE,
    "issued_count": ItemStatus.ISSUED,
    "maintenance_count": ItemStatus.MAINTENANCE,
    "damaged_count": ItemStatus.DAMAGED,
}


def pool_list_query(
    category: Optional[str] = None,
    designation: Optional[str] = None,
    search: Optional[str] = None,
    item_status: Optional[str] = None,
    officer_id: Optional[str] = None,
) -> dict:
    """
    Constructs filters for the equipment pools collection also logging the action

    :param category: Category to filter pools by.
    :param designation: Only include pools authorized for this designation.
    :param search: Case insensitive text that must appear in the name, model or manufacturer of the pool.
    :param item_status: Only include pools with at least one item in this status.
    :param officer_id: Only include pools with at least one item that has been issued to this officer.
    :return: Dictionary representing the query to pass to a pymongo's Collection `find` function
    """
    query = {}
    if category:
        query["category"] = category
    if designation:
        query["authorized_designations"] = designation
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in POOL_SEARCH_FIELDS]
    if item_status:
        query["items.status"] = item_status
    if officer_id:
        query["items.usage_history.officer_id"] = officer_id

    message = "Retrieving all equipment pools from the database"
    if not query:
        logger.info(message)
    else:
        logger.info("%s matching the provided filter(s)", message)
        logger.debug("Provided filter(s): %s", query)
    return query


def compute_pool_counts(items: list) -> dict:
    """
    Computes the stored count fields of a pool from its raw item sub-documents

    :param items: The raw item sub-documents of the pool.
    :return: Dictionary of the count fields, including `total_quantity`.
    """
    counts = {
        field: sum(1 for item in items if item.get("status") == status.value)
        for field, status in POOL_COUNT_FIELDS.items()
    }
    counts["total_quantity"] = len(items)
    return counts


def normalise_item_document(item: dict) -> bool:
    """
    Brings a raw item sub-document left in an inconsistent state by older versions of the application back in line
    with the item invariants

    - Items with a status that is not recognised become `Available`.
    - Items in maintenance without a maintenance state are treated as in ordinary maintenance.
    - Items that are not in maintenance lose any maintenance state they still carry.

    :param item: The raw item sub-document, modified in place.
    :return: `True` if the item was changed, `False` otherwise.
    """
    changed = False
    known_statuses = [status.value for status in ItemStatus]

    if item.get("status") not in known_statuses:
        logger.debug("Item %s has unrecognised status %s", item.get("unique_id"), item.get("status"))
        item["status"] = ItemStatus.AVAILABLE.value
        item["currently_issued_to"] = None
        changed = True

    if item["status"] == ItemStatus.MAINTENANCE.value:
        if not item.get("maintenance_state"):
            item["maintenance_state"] = {"kind": MaintenanceKind.ORDINARY.value, "lost_report_id": None}
            changed = True
    elif item.get("maintenance_state"):
        item["maintenance_state"] = None
        changed = True

    return changed
