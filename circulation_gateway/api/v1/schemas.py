"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx raised by the domain layer"""

    message: str
    parameters: Dict[str, Any] = {}


ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    422: {"model": ErrorResponse, "description": "Invalid input or configuration"},
    500: {"model": ErrorResponse, "description": "Storage or rule application failure"},
}


class RulesValidationRequest(BaseModel):
    """Request body for POST /v1/circulation/rules/validate"""

    rules_as_text: str = Field(..., alias="rulesAsText")


class PolicyResponse(BaseModel):
    """Response for GET /v1/policies/{kind}"""

    policy_type: str
    policy_id: str
    name: str
    conditions: List[str]


class DueDateRequest(BaseModel):
    """Request body for POST /v1/loans/due-date"""

    item_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    loan_date: datetime


class DueDateResponse(BaseModel):
    """Response for POST /v1/loans/due-date"""

    due_date: datetime
    loan_policy_id: str


class OverdueRequest(BaseModel):
    """Request body for POST /v1/loans/overdue"""

    loan_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    loan_date: datetime
    due_date: Optional[datetime] = None
    due_date_changed_by_recall: bool = False
    checkout_service_point_id: Optional[str] = None
    system_time: Optional[datetime] = Field(None, description="Defaults to the current time")


class OverdueResponse(BaseModel):
    """Response for POST /v1/loans/overdue"""

    loan_id: str
    applicable: bool
    overdue_minutes: Optional[int] = None
    fine_amount: Optional[Decimal] = None
    overdue_fine_policy_id: str
