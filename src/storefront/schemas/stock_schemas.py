from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Identifier = Union[int, str]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ReservationResponse(CamelModel):
    """Stock reservation in API responses"""
    id: str = Field(description="Reservation identifier (res_...)")
    variant_id: Identifier = Field(description="Reserved variant")
    product_id: Identifier = Field(description="Owning product")
    quantity: int = Field(ge=1, description="Units held")
    created_at: datetime = Field(description="Creation time (UTC)")
    expires_at: datetime = Field(description="Hard expiry (UTC)")
    session_id: Optional[str] = Field(default=None, description="Checkout session, if any")


class ReservationEnvelope(CamelModel):
    success: bool = True
    reservation: ReservationResponse
    message: Optional[str] = None


class SweepEnvelope(CamelModel):
    success: bool = True
    cleaned: int = Field(ge=0, description="Expired reservations removed")


class NotificationResponse(CamelModel):
    """Restock subscription in API responses"""
    id: str
    product_id: Identifier
    variant_id: Optional[Identifier] = None
    email: str
    notified: bool = False
    created_at: datetime
    notified_at: Optional[datetime] = None


class NotificationEnvelope(CamelModel):
    success: bool = True
    notification: NotificationResponse
    message: Optional[str] = None


class NotificationListEnvelope(CamelModel):
    success: bool = True
    notifications: List[NotificationResponse] = Field(default_factory=list)


class AlertDetail(CamelModel):
    product_id: Identifier
    variant_id: Optional[Identifier] = None


class LowStockAlertEnvelope(CamelModel):
    success: bool = True
    alerts_sent: int = Field(ge=0, description="Number of alert emails sent")
    details: List[AlertDetail] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        # variantId is omitted for product-level alerts
        data = super().to_json_dict()
        data["details"] = [detail.model_dump(mode="json", by_alias=True, exclude_none=True) for detail in self.details]
        return data
