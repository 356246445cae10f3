"""
Module for defining the database models mixins to be inherited from to provide specific fields
and functionality
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field, model_validator


class CreatedModifiedTimeInMixin(BaseModel):
    """
    Input model mixin that stamps a new pool or request with its creation time

    Only new documents are built from input models. Later changes are partial updates made by the repositories,
    which set `modified_time` themselves.
    """

    created_time: AwareDatetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    modified_time: Optional[AwareDatetime] = None

    @model_validator(mode="after")
    def validator(self) -> "CreatedModifiedTimeInMixin":
        """
        Validator making a new document's `modified_time` its `created_time`.
        """
        if self.modified_time is None:
            self.modified_time = self.created_time
        return self


class CreatedModifiedTimeOutMixin(BaseModel):
    """
    Output model mixin that provides creation and modified time fields
    """

    created_time: AwareDatetime
    modified_time: AwareDatetime
