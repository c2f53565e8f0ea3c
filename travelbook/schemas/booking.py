from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class BookingDataIn(BaseModel):
    """Validated booking_data record handed to the booking engine."""
    nama_pemesan: str = Field(min_length=1, max_length=255)
    nomor_hp: str = Field(min_length=1, max_length=20)
    tanggal_keberangkatan: date
    participant_count: int = Field(ge=1)
    catatan_tambahan: Optional[str] = Field(default=None, max_length=1000)

    def to_record(self) -> dict:
        return {
            "nama_pemesan": self.nama_pemesan.strip(),
            "nomor_hp": self.nomor_hp.strip(),
            "tanggal_keberangkatan": self.tanggal_keberangkatan.isoformat(),
            "jumlah_orang": self.participant_count,
            "catatan_tambahan": self.catatan_tambahan,
        }


class BookingCreateIn(BaseModel):
    nama_pemesan: str = Field(min_length=1, max_length=255)
    nomor_hp: str = Field(min_length=1, max_length=20)
    tanggal_keberangkatan: date
    participants: Optional[int] = Field(default=None, ge=1, le=50)  # trip
    passengers: Optional[int] = Field(default=None, ge=1, le=10)    # travel
    catatan_tambahan: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _require_count(self):
        if self.participants is None and self.passengers is None:
            raise ValueError("participants or passengers is required")
        return self

    def to_booking_data(self) -> BookingDataIn:
        count = self.participants if self.participants is not None else self.passengers
        return BookingDataIn(
            nama_pemesan=self.nama_pemesan,
            nomor_hp=self.nomor_hp,
            tanggal_keberangkatan=self.tanggal_keberangkatan,
            participant_count=count,
            catatan_tambahan=self.catatan_tambahan,
        )


class RejectIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)
