"""
Module for defining the API schema models for representing officer requests.
"""

from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, Field, model_validator

from police_equipment_pool_api.models.equipment_pool import ReportedCondition
from police_equipment_pool_api.models.request import (
    RequestPriority,
    RequestStatus,
    RequestType,
    StatusHistoryEntry,
)
from police_equipment_pool_api.schemas.equipment_pool import OfficerSchema
from police_equipment_pool_api.schemas.mixins import CreatedModifiedSchemaMixin


class RequestPostSchema(BaseModel):
    """
    Schema model for a request creation request.
    """

    requested_by: OfficerSchema = Field(description="The officer making the request")
    pool_id: str = Field(description="The ID of the pool the request is for")
    request_type: RequestType = Field(description="What the officer is asking for")
    assigned_unique_id: Optional[str] = Field(
        default=None,
        description="The unique ID of the item the request is about (required for all but Issue requests)",
    )
    priority: RequestPriority = Field(default=RequestPriority.MEDIUM, description="How urgent the request is")
    reason: str = Field(min_length=1, max_length=500, description="Why the request is being made")
    condition: Optional[ReportedCondition] = Field(default=None, description="The reported condition of the item")
    fir_number: Optional[str] = Field(default=None, description="The FIR number (required for Lost requests)")
    fir_date: Optional[AwareDatetime] = Field(
        default=None, description="The date the FIR was filed (required for Lost requests)"
    )
    police_station: Optional[str] = Field(
        default=None, description="The police station the FIR was filed at (required for Lost requests)"
    )
    incident_description: Optional[str] = Field(
        default=None, max_length=2000, description="Description of how the item was lost (required for Lost requests)"
    )
    expected_return_date: Optional[AwareDatetime] = Field(
        default=None, description="When the officer expects to hand an issued item back"
    )

    @model_validator(mode="after")
    def validate_request_type_fields(self) -> "RequestPostSchema":
        """
        Validator ensuring the fields each type of request depends on are given.

        :raises ValueError: If a request about a specific item doesn't give its unique ID, or a Lost request is missing
                            any of the FIR details.
        """
        if self.request_type != RequestType.ISSUE and not self.assigned_unique_id:
            raise ValueError(f"An assigned unique ID is required for {self.request_type.value} requests")

        if self.request_type == RequestType.LOST:
            missing = [
                field_name
                for field_name in ("fir_number", "fir_date", "police_station", "incident_description")
                if not getattr(self, field_name)
            ]
            if missing:
                raise ValueError(f"Lost requests require the FIR details: {', '.join(missing)}")
        return self


class RequestApproveSchema(BaseModel):
    """
    Schema model for approving a request.
    """

    approved_by: str = Field(description="The ID of the user approving the request")
    notes: Optional[str] = Field(default=None, max_length=500, description="Any notes about the approval")
    condition: Optional[ReportedCondition] = Field(
        default=None, description="The condition of a returned item as checked by the approver"
    )
    remarks: Optional[str] = Field(default=None, max_length=500, description="Any remarks about a returned item")


class RequestRejectSchema(BaseModel):
    """
    Schema model for rejecting a request.
    """

    rejected_by: str = Field(description="The ID of the user rejecting the request")
    reason: str = Field(min_length=1, max_length=500, description="Why the request was rejected")


class RequestCancelSchema(BaseModel):
    """
    Schema model for cancelling a request.
    """

    user_id: str = Field(description="The ID of the user cancelling the request, must be the requester")


class RequestSchema(CreatedModifiedSchemaMixin):
    """
    Schema model for a request response.
    """

    id: str = Field(description="The ID of the request")
    request_number: str = Field(description="The human readable number of the request e.g. REQ-20250101-0001")
    requested_by: OfficerSchema = Field(description="The officer that made the request")
    pool_id: str = Field(description="The ID of the pool the request is for")
    pool_name: str = Field(description="The name of the pool the request is for")
    assigned_unique_id: Optional[str] = Field(default=None, description="The unique ID of the item")
    request_type: RequestType = Field(description="What the officer asked for")
    status: RequestStatus = Field(description="The status of the request")
    priority: RequestPriority = Field(description="How urgent the request is")
    reason: str = Field(description="Why the request was made")
    condition: Optional[ReportedCondition] = Field(default=None, description="The reported condition of the item")
    fir_number: Optional[str] = Field(default=None, description="The FIR number")
    fir_date: Optional[AwareDatetime] = Field(default=None, description="The date the FIR was filed")
    police_station: Optional[str] = Field(default=None, description="The police station the FIR was filed at")
    incident_description: Optional[str] = Field(default=None, description="Description of how the item was lost")
    expected_return_date: Optional[AwareDatetime] = Field(
        default=None, description="When the officer expects to hand the item back"
    )
    admin_notes: Optional[str] = Field(default=None, description="Notes added when the request was processed")
    processed_by: Optional[str] = Field(default=None, description="The ID of the user that processed the request")
    processed_date: Optional[AwareDatetime] = Field(default=None, description="When the request was processed")
    approved_date: Optional[AwareDatetime] = Field(default=None, description="When the request was approved")
    completed_date: Optional[AwareDatetime] = Field(default=None, description="When the request was completed")
    status_history: List[StatusHistoryEntry] = Field(description="Every change of status of the request")
