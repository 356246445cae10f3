"""
Module providing the operations that move individual items of an equipment pool through their lifecycle.

Each operation checks every precondition before touching the pool, then mutates exactly one item and recomputes the
pool counts. Nothing here talks to the database, persisting the mutated item is left to the `EquipmentPoolService`.

    Available -> Issued -> Available
                        -> Maintenance (Ordinary) -> Available
                        -> Maintenance (Pending Investigation) -> Lost
                                                              -> Available | Maintenance (Ordinary)
"""

import logging
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from police_equipment_pool_api.core.config import config
from police_equipment_pool_api.core.consts import LOST_ITEM_RETURN_REMARKS
from police_equipment_pool_api.core.exceptions import (
    InvalidTransitionError,
    ItemNotFoundError,
    NoAvailableItemsError,
    NotAuthorizedError,
    NotInMaintenanceError,
    NotIssuedError,
)
from police_equipment_pool_api.models.equipment_pool import (
    Custodian,
    CurrentCustody,
    EquipmentPoolBase,
    FIRDetails,
    InvestigationStatus,
    ItemCondition,
    ItemRecord,
    ItemStatus,
    LostHistoryEntry,
    LostResolution,
    MaintenanceHistoryEntry,
    MaintenanceKind,
    MaintenanceState,
    MaintenanceType,
    ReportedCondition,
    UsageHistoryEntry,
    normalise_condition,
)

logger = logging.getLogger()

SECONDS_PER_DAY = 24 * 60 * 60

# Conditions a repaired item may come back in, anything worse has to be written off instead
REPAIRED_CONDITIONS = [ItemCondition.GOOD, ItemCondition.EXCELLENT]

# Admin edits may only send items to these statuses, neither of which the lifecycle operations ever leave
OUT_OF_SERVICE_STATUSES = [ItemStatus.DAMAGED, ItemStatus.RETIRED]


def _get_item(pool: EquipmentPoolBase, unique_id: str) -> ItemRecord:
    """
    Get an item from the pool or raise if it doesn't exist.

    :param pool: The pool to look in.
    :param unique_id: The unique ID of the item.
    :raises ItemNotFoundError: If the pool has no item with the unique ID.
    :return: The item.
    """
    item = pool.find_item(unique_id)
    if item is None:
        raise ItemNotFoundError(f"No item found with unique ID {unique_id} in pool {pool.pool_name}")
    return item


def _require_issued(item: ItemRecord) -> None:
    if item.status != ItemStatus.ISSUED:
        raise NotIssuedError(f"Item {item.unique_id} is not currently issued")


def _require_lost_pending(item: ItemRecord) -> None:
    if not item.is_lost_pending:
        raise InvalidTransitionError(f"Item {item.unique_id} is not pending a loss investigation")


def calculate_days_used(issued_date: datetime, returned_date: datetime) -> int:
    """
    Calculate the number of days an item was in custody.

    Partial days are rounded up, so an item handed back at the moment it was issued has been used for no days.

    :param issued_date: When the item was issued.
    :param returned_date: When the item was handed back.
    :return: The number of days used.
    """
    return math.ceil((returned_date - issued_date).total_seconds() / SECONDS_PER_DAY)


def _close_custody(
    item: ItemRecord,
    now: datetime,
    condition_at_return: ItemCondition,
    remarks: Optional[str],
    returned_to: Optional[str],
) -> None:
    """
    Close the open custody period of an issued item and clear the current custodian.

    :param item: The issued item.
    :param now: Time the custody period ends.
    :param condition_at_return: Condition of the item at the end of the custody period.
    :param remarks: Any remarks about the custody period.
    :param returned_to: ID of the user the item was handed back to.
    """
    entry = item.open_usage_entry()
    if entry is not None:
        entry.returned_date = now
        entry.condition_at_return = condition_at_return
        entry.remarks = remarks or ""
        entry.returned_to = returned_to
        entry.days_used = calculate_days_used(entry.issued_date, now)
    else:
        logger.warning("Item %s was issued without an open usage history entry", item.unique_id)
    item.currently_issued_to = None


def _send_to_maintenance(
    item: ItemRecord,
    now: datetime,
    maintenance_type: MaintenanceType,
    reason: str,
    reported_by: Optional[str] = None,
) -> MaintenanceHistoryEntry:
    """
    Put an item into ordinary maintenance and open a problem report against it.

    :param item: The item.
    :param now: Time the problem was reported.
    :param maintenance_type: Type of the maintenance history entry to open.
    :param reason: Description of the problem.
    :param reported_by: ID of the user reporting the problem.
    :return: The opened maintenance history entry.
    """
    entry = MaintenanceHistoryEntry(reported_date=now, type=maintenance_type, reason=reason, reported_by=reported_by)
    item.maintenance_history.append(entry)
    item.status = ItemStatus.MAINTENANCE
    item.maintenance_state = MaintenanceState(kind=MaintenanceKind.ORDINARY)
    return entry


def issue(
    pool: EquipmentPoolBase, custodian: Custodian, purpose: Optional[str] = None, issued_by: Optional[str] = None
) -> ItemRecord:
    """
    Issue the best available item in the pool to an officer.

    :param pool: The pool to issue from.
    :param custodian: The officer receiving the item.
    :param purpose: Why the item is being issued (defaults to the configured default purpose).
    :param issued_by: ID of the user issuing the item.
    :raises NotAuthorizedError: If the officer's designation is not authorised for the pool.
    :raises NoAvailableItemsError: If there is no item that can be issued.
    :return: The issued item.
    """
    if custodian.designation not in pool.authorized_designations:
        raise NotAuthorizedError(f"This equipment is not authorized for {custodian.designation}")

    item = pool.select_for_issue()
    if item is None:
        raise NoAvailableItemsError(f"No available items in pool: {pool.pool_name}")

    now = datetime.now(timezone.utc)
    purpose = purpose or config.lifecycle.default_issue_purpose

    logger.info("Issuing item %s from pool %s to officer %s", item.unique_id, pool.pool_name, custodian.officer_id)
    item.status = ItemStatus.ISSUED
    item.maintenance_state = None
    item.currently_issued_to = CurrentCustody(**custodian.model_dump(), issued_date=now, purpose=purpose)
    item.usage_history.append(
        UsageHistoryEntry(
            **custodian.model_dump(),
            issued_date=now,
            purpose=purpose,
            condition_at_issue=item.condition,
            issued_by=issued_by,
        )
    )
    pool.recompute_counts()
    return item


def return_item(
    pool: EquipmentPoolBase,
    unique_id: str,
    reported_condition: Optional[ReportedCondition] = None,
    remarks: Optional[str] = None,
    returned_to: Optional[str] = None,
) -> ItemRecord:
    """
    Take back an issued item and decide where it goes next based on the condition it was returned in.

    Items returned `Poor` or `Out of Service` go straight into maintenance with an inspection opened against them,
    anything better becomes available again.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param reported_condition: Condition the item was returned in (defaults to its condition before issue).
    :param remarks: Any remarks about the return.
    :param returned_to: ID of the user receiving the item.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises NotIssuedError: If the item is not currently issued.
    :return: The returned item.
    """
    item = _get_item(pool, unique_id)
    _require_issued(item)

    now = datetime.now(timezone.utc)
    reported_condition = reported_condition or item.condition
    condition = normalise_condition(reported_condition)

    logger.info("Returning item %s to pool %s in %s condition", unique_id, pool.pool_name, reported_condition)
    _close_custody(item, now, condition, remarks, returned_to)
    item.condition = condition

    if condition == ItemCondition.POOR:
        condition_label = reported_condition.value if isinstance(reported_condition, Enum) else reported_condition
        _send_to_maintenance(
            item,
            now,
            MaintenanceType.INSPECTION,
            f"Item returned in {condition_label} condition. Reason: {remarks or 'N/A'}.",
            reported_by=returned_to,
        )
        logger.info("Item %s sent to maintenance after return", unique_id)
    else:
        item.status = ItemStatus.AVAILABLE
        item.maintenance_state = None

    pool.recompute_counts()
    return item


def report_maintenance(
    pool: EquipmentPoolBase,
    unique_id: str,
    reason: str,
    reported_condition: Optional[ReportedCondition] = None,
    reported_by: Optional[str] = None,
) -> ItemRecord:
    """
    Send an item to maintenance because an officer has reported a problem with it.

    If the item is issued its custody period ends as part of the report.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param reason: The problem reported.
    :param reported_condition: Condition reported by the officer (defaults to the item's current condition).
    :param reported_by: ID of the user reporting the problem.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises InvalidTransitionError: If the item is neither issued nor available.
    :return: The item.
    """
    item = _get_item(pool, unique_id)
    if item.status not in (ItemStatus.ISSUED, ItemStatus.AVAILABLE):
        raise InvalidTransitionError(f"Cannot report maintenance for item {unique_id} with status {item.status.value}")

    now = datetime.now(timezone.utc)
    condition = normalise_condition(reported_condition or item.condition)

    logger.info("Sending item %s from pool %s to maintenance", unique_id, pool.pool_name)
    if item.status == ItemStatus.ISSUED:
        _close_custody(item, now, condition, reason, reported_by)
    item.condition = condition
    _send_to_maintenance(item, now, MaintenanceType.REPAIR, reason, reported_by=reported_by)

    pool.recompute_counts()
    return item


def complete_repair(
    pool: EquipmentPoolBase,
    unique_id: str,
    action_description: str,
    new_condition: ItemCondition,
    cost: Optional[float] = None,
    fixed_by: Optional[str] = None,
) -> ItemRecord:
    """
    Mark the repair of an item as complete and make it available again.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param action_description: What was done to fix the item.
    :param new_condition: Condition after repair, either `Good` or `Excellent`.
    :param cost: Cost of the repair.
    :param fixed_by: Who carried out the repair.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises InvalidTransitionError: If the item is pending a loss investigation or the new condition is not allowed.
    :raises NotInMaintenanceError: If the item is not in maintenance.
    :return: The repaired item.
    """
    item = _get_item(pool, unique_id)
    if item.is_lost_pending:
        raise InvalidTransitionError(f"Item {unique_id} is pending a loss investigation and cannot be repaired")
    if item.status != ItemStatus.MAINTENANCE:
        raise NotInMaintenanceError(f"Item {unique_id} is not in maintenance")
    if new_condition not in REPAIRED_CONDITIONS:
        raise InvalidTransitionError(
            f"A repaired item must be in Good or Excellent condition, not {ItemCondition(new_condition).value}"
        )

    now = datetime.now(timezone.utc)

    logger.info("Completing repair of item %s from pool %s", unique_id, pool.pool_name)
    entry = item.open_maintenance_entry()
    if entry is None:
        # Items put into maintenance before problem reports were recorded have nothing to close
        entry = MaintenanceHistoryEntry(reported_date=now, type=MaintenanceType.REPAIR, reason="N/A")
        item.maintenance_history.append(entry)
    entry.fixed_date = now
    entry.action = action_description
    entry.fixed_by = fixed_by
    entry.cost = cost

    item.status = ItemStatus.AVAILABLE
    item.maintenance_state = None
    item.condition = new_condition

    pool.recompute_counts()
    return item


def report_lost(
    pool: EquipmentPoolBase, unique_id: str, fir: FIRDetails, reported_by: Optional[str] = None
) -> ItemRecord:
    """
    Record that an issued item has been lost and hold it pending investigation.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param fir: Details of the First Information Report filed for the loss.
    :param reported_by: ID of the user that reported the loss.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises NotIssuedError: If the item is not currently issued.
    :return: The item.
    """
    item = _get_item(pool, unique_id)
    _require_issued(item)

    now = datetime.now(timezone.utc)

    logger.info("Recording loss of item %s from pool %s under FIR %s", unique_id, pool.pool_name, fir.fir_number)
    _close_custody(item, now, item.condition, LOST_ITEM_RETURN_REMARKS, reported_by)

    lost_entry = LostHistoryEntry(**fir.model_dump(), reported_date=now, reported_by=reported_by)
    item.lost_history.append(lost_entry)
    item.status = ItemStatus.MAINTENANCE
    item.maintenance_state = MaintenanceState(
        kind=MaintenanceKind.PENDING_INVESTIGATION, lost_report_id=lost_entry.id
    )

    pool.recompute_counts()
    return item


def _close_lost_entry(
    item: ItemRecord, now: datetime, resolution: LostResolution, notes: str, resolved_by: Optional[str]
) -> None:
    lost_entry = item.find_lost_entry(item.maintenance_state.lost_report_id)
    if lost_entry is None:
        raise InvalidTransitionError(f"Loss report for item {item.unique_id} could not be found")
    lost_entry.status = InvestigationStatus.CLOSED
    lost_entry.resolution = resolution
    lost_entry.resolution_notes = notes
    lost_entry.resolved_date = now
    lost_entry.resolved_by = resolved_by


def write_off_lost(
    pool: EquipmentPoolBase, unique_id: str, notes: str, resolved_by: Optional[str] = None
) -> ItemRecord:
    """
    Conclude the investigation of a lost item by writing it off. The item is never issued again.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param notes: Final report notes.
    :param resolved_by: ID of the user writing off the item.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises InvalidTransitionError: If the item is not pending a loss investigation.
    :return: The item.
    """
    item = _get_item(pool, unique_id)
    _require_lost_pending(item)

    now = datetime.now(timezone.utc)

    logger.info("Writing off lost item %s from pool %s", unique_id, pool.pool_name)
    _close_lost_entry(item, now, LostResolution.WRITTEN_OFF, notes, resolved_by)
    item.status = ItemStatus.LOST
    item.maintenance_state = None

    pool.recompute_counts()
    return item


def recover(
    pool: EquipmentPoolBase,
    unique_id: str,
    notes: str,
    condition: ItemCondition,
    resolved_by: Optional[str] = None,
) -> ItemRecord:
    """
    Conclude the investigation of a lost item because it has been found.

    A recovered item in `Poor` condition goes into ordinary maintenance, otherwise it becomes available.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param notes: How the item was recovered.
    :param condition: Condition the item was recovered in.
    :param resolved_by: ID of the user recording the recovery.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises InvalidTransitionError: If the item is not pending a loss investigation.
    :return: The item.
    """
    item = _get_item(pool, unique_id)
    _require_lost_pending(item)

    now = datetime.now(timezone.utc)
    condition = normalise_condition(condition)

    logger.info("Recovering lost item %s from pool %s in %s condition", unique_id, pool.pool_name, condition.value)
    _close_lost_entry(item, now, LostResolution.RECOVERED, notes, resolved_by)
    item.condition = condition

    if condition == ItemCondition.POOR:
        _send_to_maintenance(
            item,
            now,
            MaintenanceType.INSPECTION,
            f"Item recovered in Poor condition. Notes: {notes or 'N/A'}.",
            reported_by=resolved_by,
        )
    else:
        item.status = ItemStatus.AVAILABLE
        item.maintenance_state = None

    pool.recompute_counts()
    return item


def mark_out_of_service(
    pool: EquipmentPoolBase, unique_id: str, status: ItemStatus, notes: Optional[str] = None
) -> ItemRecord:
    """
    Take an item permanently out of circulation by marking it `Damaged` or `Retired`.

    :param pool: The pool the item belongs to.
    :param unique_id: The unique ID of the item.
    :param status: The new status, either `Damaged` or `Retired`.
    :param notes: Why the item is being taken out of service.
    :raises ItemNotFoundError: If the item doesn't exist.
    :raises InvalidTransitionError: If the status is not allowed or the item is issued, lost, pending a loss
                                    investigation or already out of service.
    :return: The item.
    """
    item = _get_item(pool, unique_id)
    if status not in OUT_OF_SERVICE_STATUSES:
        raise InvalidTransitionError(f"Items can only be marked as Damaged or Retired, not {ItemStatus(status).value}")
    if item.is_lost_pending or item.status not in (ItemStatus.AVAILABLE, ItemStatus.MAINTENANCE):
        raise InvalidTransitionError(f"Item {unique_id} cannot be taken out of service while {item.status.value}")

    now = datetime.now(timezone.utc)

    logger.info("Marking item %s from pool %s as %s", unique_id, pool.pool_name, status)
    entry = item.open_maintenance_entry()
    if entry is not None:
        entry.fixed_date = now
        entry.action = notes or f"Marked as {ItemStatus(status).value}"
    item.status = status
    item.maintenance_state = None

    pool.recompute_counts()
    return item
