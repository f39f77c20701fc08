"""
Engine configuration management.

This module handles the statutory defaults and runtime settings of the engine.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Engine environment settings.

    Loads configuration from .env file, every value has a statutory default.
    Settings:
        - GOSI_CAP: Monthly ceiling of the GOSI contribution base (SAR)
        - DEFAULT_MONTH_DIVISOR: Days per month used for daily rates
        - DEFAULT_HOURS_PER_DAY: Working hours per day used for hourly rates
        - OVERTIME_MULTIPLIER: Overtime premium (Saudi Labor Law art. 107)
        - DEFAULT_JURISDICTION: Separation rules used by the EOS engine
        - LOG_LEVEL: Level of the calcuhub logger hierarchy
        - LOG_JSON: Emit JSON lines instead of plain text
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    GOSI_CAP: Decimal = Decimal("45000")
    DEFAULT_MONTH_DIVISOR: Decimal = Decimal("30")
    DEFAULT_HOURS_PER_DAY: Decimal = Decimal("8")
    OVERTIME_MULTIPLIER: Decimal = Decimal("1.5")
    DEFAULT_JURISDICTION: str = "saudi_labor_law"
    LOG_LEVEL: str = "WARNING"
    LOG_JSON: bool = False


engine_settings = EngineSettings()
