"""
Pydantic schemas for API response models.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SideEffectModel(BaseModel):
    """Outcome of one best-effort step."""

    step: str = Field(..., description="notification, archive or success_hook")
    status: str = Field(..., description="ok, failed or skipped")
    detail: Optional[str] = Field(default=None, description="Object key, hook name or error")


class IPNResponse(BaseModel):
    """Response schema for an accepted payment notification."""

    success: bool = Field(default=True)
    message: str = Field(default="IPN received and processed successfully")
    payment_id: str = Field(..., description="Payment identifier echoed back")
    status: str = Field(..., description="Payment status as received")
    processed_at: str = Field(..., description="Processing timestamp (ISO 8601)")
    side_effects: List[SideEffectModel] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "message": "IPN received and processed successfully",
                    "payment_id": "5077125051",
                    "status": "finished",
                    "processed_at": "2025-01-06T10:00:00+00:00",
                    "side_effects": [
                        {"step": "notification", "status": "ok"},
                        {
                            "step": "archive",
                            "status": "ok",
                            "detail": "nowpayments/payments/2025-01-06_5077125051_1f3a9c0b2d.json",
                        },
                    ],
                }
            ]
        }
    }


class ErrorResponse(BaseModel):
    """Response schema for every failed request."""

    success: bool = Field(default=False)
    message: str = Field(..., description="Human-readable error")
    error: Optional[str] = Field(default=None, description="Raw error text (server errors)")
    missing_fields: Optional[List[str]] = Field(default=None)
    timestamp: Optional[str] = Field(default=None, description="Error timestamp (ISO 8601)")


class FormRequestData(BaseModel):
    type: int
    email: str
    timestamp: str


class FormRequestResponse(BaseModel):
    """Response schema for a relayed form request."""

    success: bool = Field(default=True)
    message: str
    data: FormRequestData


class UnsubscribeData(BaseModel):
    email: str
    timestamp: str


class UnsubscribeResponse(BaseModel):
    """Response schema for an unsubscribe request."""

    success: bool = Field(default=True)
    message: str = Field(default="Unsubscribe request received")
    data: UnsubscribeData
    side_effects: List[SideEffectModel] = Field(default_factory=list)


class HealthCheckResponse(BaseModel):
    """Response schema for health check."""

    status: str = Field(..., description="healthy or degraded")
    service: str = Field(..., description="Application name")
    checks: Dict[str, Any] = Field(..., description="Per-integration status")
