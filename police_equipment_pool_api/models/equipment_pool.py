"""
Module for defining the database models for representing equipment pools and the items embedded within them.
"""

from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from police_equipment_pool_api.core.consts import UNIQUE_ID_NUMBER_WIDTH
from police_equipment_pool_api.models.custom_object_id_data_types import StringObjectIdField
from police_equipment_pool_api.models.mixins import CreatedModifiedTimeInMixin, CreatedModifiedTimeOutMixin


class PoolCategory(str, Enum):
    """
    Enumeration for the categories of equipment a pool may hold
    """

    FIREARM = "Firearm"
    AMMUNITION = "Ammunition"
    PROTECTIVE_GEAR = "Protective Gear"
    COMMUNICATION_DEVICE = "Communication Device"
    VEHICLE = "Vehicle"
    TACTICAL_EQUIPMENT = "Tactical Equipment"
    LESS_LETHAL_WEAPON = "Less-Lethal Weapon"
    FORENSIC_EQUIPMENT = "Forensic Equipment"
    MEDICAL_SUPPLIES = "Medical Supplies"
    OFFICE_EQUIPMENT = "Office Equipment"
    OTHER = "Other"


class Designation(str, Enum):
    """
    Enumeration for the officer designations a pool can be authorised for
    """

    DGP = "Director General of Police (DGP)"
    SP = "Superintendent of Police (SP)"
    DCP = "Deputy Commissioner of Police (DCP)"
    DSP = "Deputy Superintendent of Police (DSP)"
    PI = "Police Inspector (PI)"
    SI = "Sub-Inspector (SI)"
    PSI = "Police Sub-Inspector (PSI)"
    HC = "Head Constable (HC)"
    PC = "Police Constable (PC)"


class ItemStatus(str, Enum):
    """
    Enumeration for what an item is currently doing
    """

    AVAILABLE = "Available"
    ISSUED = "Issued"
    MAINTENANCE = "Maintenance"
    DAMAGED = "Damaged"
    LOST = "Lost"
    RETIRED = "Retired"


class ItemCondition(str, Enum):
    """
    Enumeration for the stored condition of an item
    """

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class ReportedCondition(str, Enum):
    """
    Enumeration for the condition an officer may report when handing back or reporting an item

    `Out of Service` is only ever an input, it is stored as `Poor` with the item sent to maintenance.
    """

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    OUT_OF_SERVICE = "Out of Service"


class MaintenanceKind(str, Enum):
    """
    Enumeration for why an item is in maintenance
    """

    ORDINARY = "Ordinary"
    PENDING_INVESTIGATION = "Pending Investigation"


class MaintenanceType(str, Enum):
    """
    Enumeration for the types of maintenance history entries
    """

    ROUTINE = "Routine"
    REPAIR = "Repair"
    INSPECTION = "Inspection"
    UPGRADE = "Upgrade"
    CLEANING = "Cleaning"


class InvestigationStatus(str, Enum):
    """
    Enumeration for the status of a loss investigation
    """

    UNDER_INVESTIGATION = "Under Investigation"
    CLOSED = "Closed"


class LostResolution(str, Enum):
    """
    Enumeration for how a loss investigation was concluded
    """

    WRITTEN_OFF = "Written Off"
    RECOVERED = "Recovered"


def normalise_condition(condition: str) -> ItemCondition:
    """
    Convert a reported condition into the condition that is stored against the item.

    :param condition: The condition reported by the officer.
    :return: The stored condition (`Out of Service` is stored as `Poor`).
    """
    if condition == ReportedCondition.OUT_OF_SERVICE:
        return ItemCondition.POOR
    return ItemCondition(condition.value if isinstance(condition, Enum) else condition)


def generate_history_id() -> str:
    """
    Generate an ID for an entry in one of the embedded history ledgers.

    :return: A new unique ID as a string.
    """
    return str(ObjectId())


class Custodian(BaseModel):
    """
    Model for the identity of the officer that holds (or held) an item
    """

    user_id: str
    officer_id: str
    officer_name: str
    designation: str


class CurrentCustody(Custodian):
    """
    Model for who currently holds an issued item
    """

    issued_date: AwareDatetime
    purpose: str


class UsageHistoryEntry(Custodian):
    """
    Model for a single custody period of an item

    Opened when the item is issued and closed when it is handed back (or reported lost).
    """

    issued_date: AwareDatetime
    purpose: str
    condition_at_issue: ItemCondition
    issued_by: Optional[str] = None
    returned_date: Optional[AwareDatetime] = None
    days_used: Optional[int] = None
    condition_at_return: Optional[ItemCondition] = None
    remarks: Optional[str] = None
    returned_to: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """Whether the custody period is still ongoing."""
        return self.returned_date is None


class MaintenanceHistoryEntry(BaseModel):
    """
    Model for a problem report against an item and, once repaired, how it was fixed
    """

    id: str = Field(default_factory=generate_history_id)
    reported_date: AwareDatetime
    type: MaintenanceType
    reason: str
    reported_by: Optional[str] = None
    fixed_date: Optional[AwareDatetime] = None
    action: Optional[str] = None
    fixed_by: Optional[str] = None
    cost: Optional[float] = None

    @property
    def is_open(self) -> bool:
        """Whether the problem is still awaiting a fix."""
        return self.fixed_date is None


class FIRDetails(BaseModel):
    """
    Model for the First Information Report filed when an item is lost
    """

    fir_number: str
    fir_date: AwareDatetime
    police_station: str
    description: Optional[str] = None


class LostHistoryEntry(FIRDetails):
    """
    Model for a loss report against an item and its investigation outcome
    """

    id: str = Field(default_factory=generate_history_id)
    reported_date: AwareDatetime
    reported_by: Optional[str] = None
    status: InvestigationStatus = InvestigationStatus.UNDER_INVESTIGATION
    resolution: Optional[LostResolution] = None
    resolution_notes: Optional[str] = None
    resolved_date: Optional[AwareDatetime] = None
    resolved_by: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """Whether the loss is still under investigation."""
        return self.status == InvestigationStatus.UNDER_INVESTIGATION


class MaintenanceState(BaseModel):
    """
    Model for the reason an item currently has a `Maintenance` status

    Items awaiting the outcome of a loss investigation share the maintenance status (and so the maintenance count and
    queue) with items awaiting repair, and are told apart by `kind`.
    """

    kind: MaintenanceKind = MaintenanceKind.ORDINARY
    lost_report_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_lost_report_id(self) -> "MaintenanceState":
        """
        Validator ensuring `lost_report_id` is given exactly when the item is pending investigation.

        :raises ValueError: If `lost_report_id` does not agree with `kind`.
        """
        if (self.kind == MaintenanceKind.PENDING_INVESTIGATION) != (self.lost_report_id is not None):
            raise ValueError("A lost report ID must be given only for items pending investigation")
        return self


class ItemRecord(BaseModel):
    """
    Database model for an individual item embedded in an equipment pool.
    """

    unique_id: str
    status: ItemStatus = ItemStatus.AVAILABLE
    condition: ItemCondition = ItemCondition.EXCELLENT
    location: Optional[str] = None
    maintenance_state: Optional[MaintenanceState] = None
    currently_issued_to: Optional[CurrentCustody] = None
    usage_history: List[UsageHistoryEntry] = []
    maintenance_history: List[MaintenanceHistoryEntry] = []
    lost_history: List[LostHistoryEntry] = []

    @property
    def is_lost_pending(self) -> bool:
        """Whether the item is in maintenance because it has been reported lost."""
        return (
            self.status == ItemStatus.MAINTENANCE
            and self.maintenance_state is not None
            and self.maintenance_state.kind == MaintenanceKind.PENDING_INVESTIGATION
        )

    def open_usage_entry(self) -> Optional[UsageHistoryEntry]:
        """
        Get the custody period that is currently open (only ever the most recent one).

        :return: The open usage history entry or `None` if there isn't one.
        """
        if self.usage_history and self.usage_history[-1].is_open:
            return self.usage_history[-1]
        return None

    def open_maintenance_entry(self) -> Optional[MaintenanceHistoryEntry]:
        """
        Get the most recent maintenance history entry that has not yet been fixed.

        :return: The open maintenance history entry or `None` if there isn't one.
        """
        for entry in reversed(self.maintenance_history):
            if entry.is_open:
                return entry
        return None

    def find_lost_entry(self, lost_report_id: str) -> Optional[LostHistoryEntry]:
        """
        Get a loss report by its ID.

        :param lost_report_id: The ID of the loss report.
        :return: The loss report or `None` if not found.
        """
        for entry in self.lost_history:
            if entry.id == lost_report_id:
                return entry
        return None


# Order in which available items are handed out, best maintained first. Poor items are never issued directly.
ISSUE_CONDITION_PREFERENCE = [ItemCondition.EXCELLENT, ItemCondition.GOOD, ItemCondition.FAIR]


class EquipmentPoolBase(BaseModel):
    """
    Base database model for an equipment pool.

    The pool owns its items, so every change to an item goes through the pool and is written back together with the
    recomputed counts.
    """

    pool_name: str = Field(max_length=100)
    category: PoolCategory
    sub_category: Optional[str] = None
    model: str
    manufacturer: Optional[str] = None
    authorized_designations: List[Designation]
    prefix: str
    location: str
    purchase_date: Optional[AwareDatetime] = None
    total_cost: Optional[float] = None
    supplier: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    added_by: Optional[str] = None
    total_quantity: int = 0
    available_count: int = 0
    issued_count: int = 0
    maintenance_count: int = 0
    damaged_count: int = 0
    items: List[ItemRecord] = []

    def count_items_with_status(self, status: ItemStatus) -> int:
        """
        Count the items in the pool with the given status.

        :param status: The status to count.
        :return: The number of items with that status.
        """
        return sum(1 for item in self.items if item.status == status)

    def recompute_counts(self) -> None:
        """
        Recompute the derived counts from the statuses of the items in the pool.
        """
        self.available_count = self.count_items_with_status(ItemStatus.AVAILABLE)
        self.issued_count = self.count_items_with_status(ItemStatus.ISSUED)
        self.maintenance_count = self.count_items_with_status(ItemStatus.MAINTENANCE)
        self.damaged_count = self.count_items_with_status(ItemStatus.DAMAGED)

    def find_item_index(self, unique_id: str) -> Optional[int]:
        """
        Find the position of an item within the pool.

        :param unique_id: The unique ID of the item e.g. `GLK-001`.
        :return: The index of the item in `items` or `None` if not found.
        """
        for index, item in enumerate(self.items):
            if item.unique_id == unique_id:
                return index
        return None

    def find_item(self, unique_id: str) -> Optional[ItemRecord]:
        """
        Find an item within the pool.

        :param unique_id: The unique ID of the item e.g. `GLK-001`.
        :return: The item or `None` if not found.
        """
        index = self.find_item_index(unique_id)
        return None if index is None else self.items[index]

    def select_for_issue(self) -> Optional[ItemRecord]:
        """
        Select the next item to hand out.

        Available items in `Excellent` condition are preferred, then `Good`, then `Fair`. Within a condition the first
        item in the pool is chosen.

        :return: The selected item or `None` if there is nothing that can be issued.
        """
        for condition in ISSUE_CONDITION_PREFERENCE:
            for item in self.items:
                if item.status == ItemStatus.AVAILABLE and item.condition == condition:
                    return item
        return None

    @property
    def utilization_rate(self) -> float:
        """Percentage of the pool currently issued."""
        if self.total_quantity == 0:
            return 0.0
        return round(self.issued_count / self.total_quantity * 100, 2)

    @staticmethod
    def generate_unique_ids(prefix: str, start_from: int, count: int) -> List[str]:
        """
        Generate sequential unique IDs for items in a pool.

        :param prefix: The pool prefix e.g. `GLK`.
        :param start_from: The number of the first ID.
        :param count: The number of IDs to generate.
        :return: The list of IDs e.g. `["GLK-001", "GLK-002"]`.
        """
        return [
            f"{prefix}-{str(number).zfill(UNIQUE_ID_NUMBER_WIDTH)}" for number in range(start_from, start_from + count)
        ]


class EquipmentPoolIn(CreatedModifiedTimeInMixin, EquipmentPoolBase):
    """
    Input database model for an equipment pool.
    """

    # Incremented on every write so that concurrent writers can detect they are working on a stale copy
    version: int = 0


class EquipmentPoolOut(CreatedModifiedTimeOutMixin, EquipmentPoolBase):
    """
    Output database model for an equipment pool.

    Counts are always recomputed from the items when a pool is read rather than trusting the stored values.
    """

    id: StringObjectIdField = Field(alias="_id")
    version: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def refresh_counts(self) -> "EquipmentPoolOut":
        """
        Validator that recomputes the derived counts from the items that were read.
        """
        self.recompute_counts()
        return self
