"""
Module for defining the schema mixins to be inherited from to provide specific fields
"""

from pydantic import AwareDatetime, BaseModel, Field


class CreatedModifiedSchemaMixin(BaseModel):
    """
    Output schema mixin that provides creation and modified time fields for pools and requests
    """

    created_time: AwareDatetime = Field(description="The date and time the pool or request was created")
    modified_time: AwareDatetime = Field(description="The date and time the pool or request was last changed")
