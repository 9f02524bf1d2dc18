"""
Report Settings

Typed run configuration for the report pipeline. Values come from the
environment (optionally a .env file) and can be overridden explicitly.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

from aw_analytics.coreutils.env import env_values

# Environment variable for each settings field
ENV_KEYS = {
    "data_dir": "AW_DATA_DIR",
    "output_dir": "AW_OUTPUT_DIR",
    "target_year": "AW_TARGET_YEAR",
    "shipped_status": "AW_SHIPPED_STATUS",
    "pending_status": "AW_PENDING_STATUS",
    "top_n": "AW_TOP_N",
    "output_format": "AW_OUTPUT_FORMAT",
    "log_level": "AW_LOG_LEVEL",
}

OUTPUT_FORMATS = ("csv", "parquet", "json")


class ReportSettings(BaseModel):
    """Settings shared by every report run"""

    data_dir: str = Field("data", description="Directory holding the source tables")
    output_dir: str = Field("output", description="Directory for result tables")
    target_year: int = Field(
        2014, ge=1900, le=9999, description="Year used by single-year reports"
    )
    shipped_status: int = Field(5, description="SalesOrderHeader status for shipped")
    pending_status: int = Field(
        1, description="PurchaseOrderHeader status for pending"
    )
    top_n: int = Field(3, ge=1, description="Rank cut-off for top-N reports")
    output_format: str = Field("csv", description="csv, parquet or json")
    log_level: str = Field("INFO", description="Logging level name")

    @field_validator("output_format")
    @classmethod
    def check_output_format(cls, v: str) -> str:
        v = v.lower()
        if v not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        return v.upper()


def load_settings(**overrides: Optional[Any]) -> ReportSettings:
    """
    Build settings from environment variables and explicit overrides

    Args:
        **overrides: Field values that win over the environment (None is ignored)

    Returns:
        ReportSettings: Validated settings
    """
    values: Dict[str, Any] = dict(env_values(ENV_KEYS))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ReportSettings(**values)
