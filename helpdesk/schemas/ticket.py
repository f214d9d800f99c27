from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from helpdesk.models import TicketPriority, TicketStatus

# Fields a client may clear by sending null
NULLABLE_FIELDS = {"assigned_to"}


class TicketCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    priority: TicketPriority = TicketPriority.MEDIUM.value
    category: str = Field(..., min_length=1)
    assigned_to: Optional[str] = Field(None, alias="assignedTo")


class TicketUpdate(BaseModel):
    """Partial update; only the fields the client sent are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    category: Optional[str] = Field(None, min_length=1)
    assigned_to: Optional[str] = Field(None, alias="assignedTo")

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.model_fields_set - NULLABLE_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} may not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
