from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class ExchangeStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DeliveryMethod(str, Enum):
    IN_PERSON = "in-person"
    COURIER = "courier"
    MAIL = "mail"


class ExchangeTerms(BaseModel):
    deliveryMethod: DeliveryMethod
    duration: int = Field(ge=1, le=90)
    location: Optional[str] = None
    additionalNotes: Optional[str] = None

    def to_document(self) -> dict:
        return {
            "delivery_method": self.deliveryMethod.value,
            "duration": self.duration,
            "location": self.location,
            "additional_notes": self.additionalNotes,
        }


class ExchangeRequest(BaseModel):
    bookId: str
    terms: ExchangeTerms
    message: Optional[str] = None


class ExchangeStatusUpdate(BaseModel):
    status: ExchangeStatus
    message: Optional[str] = None


class ExchangeMessage(BaseModel):
    message: str = Field(min_length=1)
