"""
Module for defining the database models for representing officer requests against equipment pools.
"""

from enum import Enum
from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from police_equipment_pool_api.models.custom_object_id_data_types import CustomObjectIdField, StringObjectIdField
from police_equipment_pool_api.models.equipment_pool import Custodian, ReportedCondition
from police_equipment_pool_api.models.mixins import CreatedModifiedTimeInMixin, CreatedModifiedTimeOutMixin


class RequestType(str, Enum):
    """
    Enumeration for what an officer is asking for
    """

    ISSUE = "Issue"
    RETURN = "Return"
    MAINTENANCE = "Maintenance"
    LOST = "Lost"


class RequestStatus(str, Enum):
    """
    Enumeration for the statuses of a request
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class RequestPriority(str, Enum):
    """
    Enumeration for how urgently a request should be processed
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class StatusHistoryEntry(BaseModel):
    """
    Model for a single change of status of a request
    """

    status: RequestStatus
    changed_by: Optional[str] = None
    changed_date: AwareDatetime
    notes: Optional[str] = None


class RequestBase(BaseModel):
    """
    Base database model for a request.
    """

    request_number: str
    requested_by: Custodian
    pool_id: CustomObjectIdField
    pool_name: str
    assigned_unique_id: Optional[str] = None
    request_type: RequestType
    status: RequestStatus = RequestStatus.PENDING
    priority: RequestPriority = RequestPriority.MEDIUM
    reason: str = Field(max_length=500)
    condition: Optional[ReportedCondition] = None
    fir_number: Optional[str] = None
    fir_date: Optional[AwareDatetime] = None
    police_station: Optional[str] = None
    incident_description: Optional[str] = Field(default=None, max_length=2000)
    expected_return_date: Optional[AwareDatetime] = None
    admin_notes: Optional[str] = Field(default=None, max_length=500)
    processed_by: Optional[str] = None
    processed_date: Optional[AwareDatetime] = None
    approved_date: Optional[AwareDatetime] = None
    completed_date: Optional[AwareDatetime] = None
    status_history: List[StatusHistoryEntry] = []


class RequestIn(CreatedModifiedTimeInMixin, RequestBase):
    """
    Input database model for a request.
    """


class RequestOut(CreatedModifiedTimeOutMixin, RequestBase):
    """
    Output database model for a request.
    """

    id: StringObjectIdField = Field(alias="_id")
    pool_id: StringObjectIdField

    model_config = ConfigDict(populate_by_name=True)
