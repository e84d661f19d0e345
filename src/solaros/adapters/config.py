# src/solaros/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///solaros.db")

    # If set, lead endpoints require a matching x-api-key header
    API_KEY: str | None = Field(default=None)

    # -----------------------------
    # Leads / proposals defaults
    # -----------------------------
    LEADS_DEFAULT_LIMIT: int = Field(default=50)
    PROPOSAL_VALID_DAYS: int = Field(default=30)
    DEFAULT_OFFSET_TARGET_PCT: float = Field(default=100.0)
    INCENTIVE_EXPIRY_NOTICE_DAYS: int = Field(default=90)

    # -----------------------------
    # Proposal engine overrides
    # -----------------------------
    SYSTEM_EFFICIENCY: float = Field(default=0.85)
    COST_PER_WATT: float = Field(default=2.75)
    FEDERAL_ITC_RATE: float = Field(default=0.30)
    PRODUCTION_DEGRADATION_RATE: float = Field(default=0.005)

    model_config = SettingsConfigDict(
        env_prefix="SOLAROS_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "SYSTEM_EFFICIENCY",
        "FEDERAL_ITC_RATE",
        "PRODUCTION_DEGRADATION_RATE",
        mode="before",
    )
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator("COST_PER_WATT", "DEFAULT_OFFSET_TARGET_PCT", mode="before")
    @classmethod
    def _positive(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().replace("$", "").replace("%", "")
        f = float(v)
        if f <= 0:
            raise ValueError("value must be > 0")
        return f


config = AppConfig()
