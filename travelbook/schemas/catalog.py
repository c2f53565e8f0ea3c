from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TripIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    location: str = Field(min_length=1, max_length=200)
    duration: str = Field(min_length=1, max_length=60)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    quota: int = Field(ge=1)
    image: Optional[str] = Field(default=None, max_length=512)
    is_active: bool = True


class TripUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    duration: Optional[str] = Field(default=None, min_length=1, max_length=60)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    quota: Optional[int] = Field(default=None, ge=0)  # 0 closes the trip for new bookings
    image: Optional[str] = Field(default=None, max_length=512)
    is_active: Optional[bool] = None


class TravelIn(BaseModel):
    origin: str = Field(min_length=1, max_length=120)
    destination: str = Field(min_length=1, max_length=120)
    vehicle_type: str = Field(default="", max_length=60)
    price_per_person: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    capacity: Optional[int] = Field(default=None, ge=1)
    image: Optional[str] = Field(default=None, max_length=512)
    is_active: bool = True


class TravelUpdate(BaseModel):
    origin: Optional[str] = Field(default=None, min_length=1, max_length=120)
    destination: Optional[str] = Field(default=None, min_length=1, max_length=120)
    vehicle_type: Optional[str] = Field(default=None, max_length=60)
    price_per_person: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    capacity: Optional[int] = Field(default=None, ge=1)
    image: Optional[str] = Field(default=None, max_length=512)
    is_active: Optional[bool] = None
