"""
Defines the data models and enums for report management.
"""

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from typing import Any, List, Optional, Union


class ReportStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"


class Report(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    target: Union[int, float]
    reporter: Union[int, float]
    context: str
    reason: str
    timestamp: str
    source_address: Optional[str] = Field(default=None, alias="sourceAddress")
    status: ReportStatus = ReportStatus.pending
    actioned_at: Optional[str] = Field(default=None, alias="actionedAt")


class ReportCreate(BaseModel):
    # Raw values, coerced by utils.validate_submission
    target: Any = None
    reporter: Any = None
    context: Any = None
    reason: Any = None


class ReportCreated(BaseModel):
    success: bool = True
    message: str
    report_id: str


class ReportListing(BaseModel):
    pending: List[Report]
    actioned: List[Report]


class ActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_id: Optional[str] = Field(default=None, alias="reportId")
    action: Optional[str] = None


class ActionResult(BaseModel):
    success: bool = True
    message: str
