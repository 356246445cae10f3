"""
Module for providing a service for reporting on the items across all equipment pools and on the requests made for
them using the `EquipmentPoolRepo` and `RequestRepo` repositories.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, List, Optional

from fastapi import Depends

from police_equipment_pool_api.core.consts import DASHBOARD_PENDING_REQUESTS_LIMIT, RECENT_REQUESTS_DAYS
from police_equipment_pool_api.core.exceptions import InvalidActionError
from police_equipment_pool_api.models.equipment_pool import (
    EquipmentPoolOut,
    ItemRecord,
    ItemStatus,
    MaintenanceKind,
    PoolCategory,
)
from police_equipment_pool_api.models.request import RequestStatus
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo
from police_equipment_pool_api.repositories.request import RequestRepo
from police_equipment_pool_api.schemas.report import (
    DashboardSchema,
    IssuedItemSchema,
    MaintenanceItemSchema,
    OfficerUsageSchema,
    RequestSummarySchema,
    StatusSummarySchema,
)
from police_equipment_pool_api.schemas.request import RequestSchema

logger = logging.getLogger()


def _pool_item_fields(equipment_pool: EquipmentPoolOut, item: ItemRecord) -> dict:
    return {
        "pool_id": equipment_pool.id,
        "pool_name": equipment_pool.pool_name,
        "category": equipment_pool.category,
        "model": equipment_pool.model,
        "unique_id": item.unique_id,
        "condition": item.condition,
    }


class ReportService:
    """
    Service for reporting on the items across all equipment pools and the requests made for them.
    """

    def __init__(
        self,
        equipment_pool_repository: Annotated[EquipmentPoolRepo, Depends(EquipmentPoolRepo)],
        request_repository: Annotated[RequestRepo, Depends(RequestRepo)],
    ) -> None:
        """
        Initialise the `ReportService` with `EquipmentPoolRepo` and `RequestRepo` repositories.

        :param equipment_pool_repository: The `EquipmentPoolRepo` repository to use.
        :param request_repository: The `RequestRepo` repository to use.
        """
        self._equipment_pool_repository = equipment_pool_repository
        self._request_repository = request_repository

    def issued_items(self) -> List[IssuedItemSchema]:
        """
        Get every item that is currently in the custody of an officer.

        :return: List of issued items, grouped by pool.
        """
        equipment_pools = self._equipment_pool_repository.list(item_status=ItemStatus.ISSUED)
        return [
            IssuedItemSchema(
                **_pool_item_fields(equipment_pool, item), currently_issued_to=item.currently_issued_to
            )
            for equipment_pool in equipment_pools
            for item in equipment_pool.items
            if item.status == ItemStatus.ISSUED
        ]

    def maintenance_items(self) -> List[MaintenanceItemSchema]:
        """
        Get every item that needs attention, whether awaiting repair or the outcome of a loss investigation.

        :return: List of items in maintenance, grouped by pool.
        """
        equipment_pools = self._equipment_pool_repository.list(item_status=ItemStatus.MAINTENANCE)
        maintenance_items = []
        for equipment_pool in equipment_pools:
            for item in equipment_pool.items:
                if item.status != ItemStatus.MAINTENANCE:
                    continue
                lost_report = (
                    item.find_lost_entry(item.maintenance_state.lost_report_id) if item.is_lost_pending else None
                )
                maintenance_items.append(
                    MaintenanceItemSchema(
                        **_pool_item_fields(equipment_pool, item),
                        kind=item.maintenance_state.kind if item.maintenance_state else MaintenanceKind.ORDINARY,
                        open_maintenance=item.open_maintenance_entry(),
                        lost_report=lost_report,
                    )
                )
        return maintenance_items

    def officer_history(self, officer_id: str) -> List[OfficerUsageSchema]:
        """
        Get every custody period of an officer across all equipment pools.

        :param officer_id: The service number of the officer.
        :return: List of custody periods, most recently issued first.
        """
        equipment_pools = self._equipment_pool_repository.list(officer_id=officer_id)
        history = [
            OfficerUsageSchema(**_pool_item_fields(equipment_pool, item), usage=usage)
            for equipment_pool in equipment_pools
            for item in equipment_pool.items
            for usage in item.usage_history
            if usage.officer_id == officer_id
        ]
        return sorted(history, key=lambda row: row.usage.issued_date, reverse=True)

    def status_summary(self) -> StatusSummarySchema:
        """
        Count the items in each status across all equipment pools.

        :return: The number of pools, items and items in each status.
        """
        counts = self._equipment_pool_repository.count_items_by_status()
        status_counts = {status: counts.get(status.value, 0) for status in ItemStatus}
        return StatusSummarySchema(
            total_pools=self._equipment_pool_repository.count(),
            total_items=sum(status_counts.values()),
            status_counts=status_counts,
        )

    def dashboard(self) -> DashboardSchema:
        """
        Get an overview of the equipment pools and of the requests awaiting a decision.

        Item totals are counted from the items themselves rather than the counts stored against each pool.

        :return: The dashboard.
        """
        status_counts = self._equipment_pool_repository.count_items_by_status()
        category_counts = self._equipment_pool_repository.count_items_by_category()
        request_counts = self._request_repository.count_by_status()
        recent_request_counts = self._request_repository.count_by_status(
            created_from=datetime.now(timezone.utc) - timedelta(days=RECENT_REQUESTS_DAYS)
        )
        latest_pending_requests = self._request_repository.list(
            status=RequestStatus.PENDING, limit=DASHBOARD_PENDING_REQUESTS_LIMIT
        )

        return DashboardSchema(
            total_pools=self._equipment_pool_repository.count(),
            total_equipment=sum(status_counts.values()),
            available_equipment=status_counts.get(ItemStatus.AVAILABLE.value, 0),
            issued_equipment=status_counts.get(ItemStatus.ISSUED.value, 0),
            category_counts={category: category_counts.get(category.value, 0) for category in PoolCategory},
            pending_requests=request_counts.get(RequestStatus.PENDING.value, 0),
            recent_requests=sum(recent_request_counts.values()),
            latest_pending_requests=[RequestSchema(**request.model_dump()) for request in latest_pending_requests],
        )

    def request_summary(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> RequestSummarySchema:
        """
        Count the requests in each status that were made within a period.

        :param start_date: The start of the period (defaults to 30 days before its end).
        :param end_date: The end of the period (defaults to now).
        :return: The number of requests made within the period and the number in each status.
        :raises InvalidActionError: If the period starts after it ends.
        """
        end_date = end_date or datetime.now(timezone.utc)
        start_date = start_date or end_date - timedelta(days=RECENT_REQUESTS_DAYS)
        if start_date > end_date:
            raise InvalidActionError("The start date of the period must not be after its end date")

        counts = self._request_repository.count_by_status(created_from=start_date, created_to=end_date)
        status_counts = {status: counts.get(status.value, 0) for status in RequestStatus}
        return RequestSummarySchema(
            start_date=start_date,
            end_date=end_date,
            total_requests=sum(status_counts.values()),
            status_counts=status_counts,
        )
