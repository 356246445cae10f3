"""
Module for defining the API schema models for the reports over all equipment pools and requests.
"""

from typing import Dict, List, Optional

from pydantic import AwareDatetime, BaseModel, Field

from police_equipment_pool_api.models.equipment_pool import (
    CurrentCustody,
    ItemCondition,
    ItemStatus,
    LostHistoryEntry,
    MaintenanceHistoryEntry,
    MaintenanceKind,
    PoolCategory,
    UsageHistoryEntry,
)
from police_equipment_pool_api.models.request import RequestStatus
from police_equipment_pool_api.schemas.request import RequestSchema


class PoolItemSchema(BaseModel):
    """
    Base schema model for a row of a report that refers to an item in a pool.
    """

    pool_id: str = Field(description="The ID of the pool the item belongs to")
    pool_name: str = Field(description="The name of the pool the item belongs to")
    category: PoolCategory = Field(description="The category of the pool")
    model: str = Field(description="The model of the equipment")
    unique_id: str = Field(description="The unique ID of the item")
    condition: ItemCondition = Field(description="The current condition of the item")


class IssuedItemSchema(PoolItemSchema):
    """
    Schema model for an item that is currently in custody.
    """

    currently_issued_to: CurrentCustody = Field(description="The officer holding the item")


class MaintenanceItemSchema(PoolItemSchema):
    """
    Schema model for an item in the maintenance queue.
    """

    kind: MaintenanceKind = Field(description="Whether the item awaits repair or the outcome of a loss investigation")
    open_maintenance: Optional[MaintenanceHistoryEntry] = Field(
        default=None, description="The problem report awaiting a fix"
    )
    lost_report: Optional[LostHistoryEntry] = Field(
        default=None, description="The loss report under investigation (only for items pending investigation)"
    )


class OfficerUsageSchema(PoolItemSchema):
    """
    Schema model for a single custody period of an officer.
    """

    usage: UsageHistoryEntry = Field(description="The custody period")


class StatusSummarySchema(BaseModel):
    """
    Schema model for the number of items in each status across all pools.
    """

    total_pools: int = Field(description="The number of pools")
    total_items: int = Field(description="The number of items across all pools")
    status_counts: Dict[ItemStatus, int] = Field(description="The number of items with each status")


class DashboardSchema(BaseModel):
    """
    Schema model for the overview of all equipment pools and requests shown to admins.
    """

    total_pools: int = Field(description="The number of pools")
    total_equipment: int = Field(description="The number of items across all pools")
    available_equipment: int = Field(description="The number of items available to be issued")
    issued_equipment: int = Field(description="The number of items in the custody of officers")
    category_counts: Dict[PoolCategory, int] = Field(description="The number of items in pools of each category")
    pending_requests: int = Field(description="The number of requests awaiting a decision")
    recent_requests: int = Field(description="The number of requests made in the last 30 days")
    latest_pending_requests: List[RequestSchema] = Field(description="The newest requests awaiting a decision")


class RequestSummarySchema(BaseModel):
    """
    Schema model for the number of requests in each status made within a period.
    """

    start_date: AwareDatetime = Field(description="The start of the period")
    end_date: AwareDatetime = Field(description="The end of the period")
    total_requests: int = Field(description="The number of requests made within the period")
    status_counts: Dict[RequestStatus, int] = Field(description="The number of requests with each status")
