"""
Module for defining the API schema models for representing equipment pools and the lifecycle operations on their
items.
"""

from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from police_equipment_pool_api.models.equipment_pool import (
    Designation,
    ItemCondition,
    ItemRecord,
    ItemStatus,
    LostHistoryEntry,
    MaintenanceHistoryEntry,
    PoolCategory,
    ReportedCondition,
    UsageHistoryEntry,
)
from police_equipment_pool_api.schemas.mixins import CreatedModifiedSchemaMixin


class OfficerSchema(BaseModel):
    """
    Schema model for the identity of an officer.
    """

    user_id: str = Field(description="The ID of the user account of the officer")
    officer_id: str = Field(description="The service number of the officer")
    officer_name: str = Field(description="The full name of the officer")
    designation: Designation = Field(description="The designation (rank) of the officer")


class EquipmentPoolBaseSchema(BaseModel):
    """
    Base schema model for an equipment pool.
    """

    pool_name: str = Field(max_length=100, description="The name of the pool e.g. Glock 17 Pistols")
    category: PoolCategory = Field(description="The category of equipment held in the pool")
    sub_category: Optional[str] = Field(default=None, description="A more specific category e.g. Pistol")
    model: str = Field(description="The model of the equipment")
    manufacturer: Optional[str] = Field(default=None, description="The manufacturer of the equipment")
    authorized_designations: List[Designation] = Field(
        min_length=1, description="The designations that are authorized to be issued equipment from the pool"
    )
    location: str = Field(description="Where the equipment is stored")
    purchase_date: Optional[AwareDatetime] = Field(default=None, description="The date the equipment was purchased")
    total_cost: Optional[float] = Field(default=None, ge=0, description="The total cost of the equipment")
    supplier: Optional[str] = Field(default=None, description="The supplier of the equipment")
    notes: Optional[str] = Field(default=None, max_length=1000, description="Any notes about the pool")
    added_by: Optional[str] = Field(default=None, description="The ID of the user that added the pool")


class EquipmentPoolPostSchema(EquipmentPoolBaseSchema):
    """
    Schema model for an equipment pool creation request.
    """

    prefix: str = Field(
        min_length=2, max_length=5, description="Prefix used to generate the unique IDs of the items e.g. GLK"
    )
    quantity: int = Field(ge=1, le=1000, description="The number of items to create in the pool")

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, prefix: str) -> str:
        """
        Validator for the `prefix` field that strips whitespace and converts it to upper case.

        :param prefix: The prefix of the pool.
        :raises ValueError: If the prefix is not alphanumeric.
        :return: The normalised prefix.
        """
        prefix = prefix.strip().upper()
        if not prefix.isalnum():
            raise ValueError("Prefix must only contain letters and numbers")
        return prefix


class EquipmentPoolSchema(CreatedModifiedSchemaMixin, EquipmentPoolBaseSchema):
    """
    Schema model for an equipment pool response.
    """

    id: str = Field(description="The ID of the pool")
    prefix: str = Field(description="Prefix used to generate the unique IDs of the items")
    total_quantity: int = Field(description="The number of items in the pool")
    available_count: int = Field(description="The number of items that are available to be issued")
    issued_count: int = Field(description="The number of items that are currently issued")
    maintenance_count: int = Field(description="The number of items that are in maintenance or pending investigation")
    damaged_count: int = Field(description="The number of items that are damaged")
    utilization_rate: float = Field(description="Percentage of the items in the pool that are currently issued")
    items: List[ItemRecord] = Field(description="The items in the pool")


class IssuePostSchema(OfficerSchema):
    """
    Schema model for issuing an item from a pool to an officer.
    """

    purpose: Optional[str] = Field(default=None, description="Why the item is being issued (default Regular Duty)")
    issued_by: Optional[str] = Field(default=None, description="The ID of the user issuing the item")


class IssueSchema(BaseModel):
    """
    Schema model for the response to issuing an item.
    """

    unique_id: str = Field(description="The unique ID of the item that was issued")
    issued_date: AwareDatetime = Field(description="The date and time the item was issued")
    available_count: int = Field(description="The number of items left available in the pool")


class ReturnPostSchema(BaseModel):
    """
    Schema model for returning an issued item to its pool.
    """

    unique_id: str = Field(description="The unique ID of the item being returned")
    condition: Optional[ReportedCondition] = Field(
        default=None, description="The condition the item was returned in (defaults to its condition when issued)"
    )
    remarks: Optional[str] = Field(default=None, max_length=500, description="Any remarks about the return")
    returned_to: Optional[str] = Field(default=None, description="The ID of the user receiving the item")


class ReturnSchema(BaseModel):
    """
    Schema model for the response to returning an item.
    """

    unique_id: str = Field(description="The unique ID of the item that was returned")
    days_used: Optional[int] = Field(description="The number of days the item was in custody")
    condition: ItemCondition = Field(description="The condition of the item after the return")
    status: ItemStatus = Field(description="The status of the item after the return")
    available_count: int = Field(description="The number of items available in the pool after the return")


class RepairPostSchema(BaseModel):
    """
    Schema model for completing the repair of an item.
    """

    action_description: str = Field(min_length=1, description="What was done to fix the item")
    new_condition: ItemCondition = Field(description="The condition of the item after repair, Good or Excellent")
    cost: Optional[float] = Field(default=None, ge=0, description="The cost of the repair")
    fixed_by: Optional[str] = Field(default=None, description="Who carried out the repair")


class WriteOffPostSchema(BaseModel):
    """
    Schema model for writing off a lost item.
    """

    notes: str = Field(min_length=1, description="The final report notes of the investigation")
    resolved_by: Optional[str] = Field(default=None, description="The ID of the user writing off the item")


class RecoverPostSchema(BaseModel):
    """
    Schema model for recording the recovery of a lost item.
    """

    notes: str = Field(min_length=1, description="How the item was recovered")
    condition: ItemCondition = Field(description="The condition the item was recovered in")
    resolved_by: Optional[str] = Field(default=None, description="The ID of the user recording the recovery")


class OutOfServicePostSchema(BaseModel):
    """
    Schema model for taking an item out of service.
    """

    status: ItemStatus = Field(description="The new status of the item, Damaged or Retired")
    notes: Optional[str] = Field(default=None, description="Why the item is being taken out of service")


class ItemTransitionSchema(BaseModel):
    """
    Schema model for the response to an operation moving an item to a new status.
    """

    unique_id: str = Field(description="The unique ID of the item")
    new_status: ItemStatus = Field(description="The status of the item after the operation")


class ItemHistorySchema(BaseModel):
    """
    Schema model for the full history of an item.
    """

    pool_id: str = Field(description="The ID of the pool the item belongs to")
    pool_name: str = Field(description="The name of the pool the item belongs to")
    unique_id: str = Field(description="The unique ID of the item")
    status: ItemStatus = Field(description="The current status of the item")
    condition: ItemCondition = Field(description="The current condition of the item")
    usage_history: List[UsageHistoryEntry] = Field(description="Every custody period of the item, oldest first")
    maintenance_history: List[MaintenanceHistoryEntry] = Field(
        description="Every problem reported against the item, oldest first"
    )
    lost_history: List[LostHistoryEntry] = Field(description="Every loss report against the item, oldest first")
