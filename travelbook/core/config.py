from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

PRICING_MODES = ("per_person", "flat")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Travelbook API"
    # Comma-separated origins for CORS (e.g. https://travelbook.id,https://admin.travelbook.id). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Booking lifecycle
    BOOKING_EXPIRY_HOURS: int = 24
    TRIP_PRICING_MODE: str = "per_person"    # per_person|flat
    TRAVEL_PRICING_MODE: str = "per_person"  # per_person|flat
    TRAVEL_DEFAULT_MAX_PASSENGERS: int = 10
    NOTIFY_ON_EXPIRY: bool = False
    SWEEP_INTERVAL_SECONDS: float = 300.0

    @field_validator("TRIP_PRICING_MODE", "TRAVEL_PRICING_MODE", mode="after")
    @classmethod
    def check_pricing_mode(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in PRICING_MODES:
            raise ValueError(f"pricing mode must be one of {', '.join(PRICING_MODES)}")
        return v

    # Payment proof storage
    PAYMENT_PROOF_DIR: str = "./data/payment_proofs"
    PAYMENT_PROOF_MAX_BYTES: int = 5 * 1024 * 1024
    PAYMENT_PROOF_BANKS: str = "BCA,Mandiri"

    @property
    def payment_proof_banks(self) -> list[str]:
        return [b.strip() for b in self.PAYMENT_PROOF_BANKS.split(",") if b.strip()]


settings = Settings()
