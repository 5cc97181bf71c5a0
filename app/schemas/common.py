"""
Shared response envelopes.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ActionResult(BaseModel):
    """
    Result of a mutating action.
    Extra keys carry the action payload (e.g. `property`, `is_favorite`).
    """

    model_config = ConfigDict(extra="allow")

    success: bool = Field(..., description="Whether the action succeeded")
    error: Optional[str] = Field(None, description="Error message when success is false")
    upgrade_required: Optional[bool] = Field(None, description="Set when a plan limit blocked the action")
    current_limit: Optional[int] = Field(None, description="Limit of the current plan")
    warning: Optional[str] = Field(None, description="Non-fatal issue (e.g. notification failure)")
