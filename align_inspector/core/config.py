import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


class Settings:
    # Project Settings
    PROJECT_NAME: str = "Alignment Inspector"
    VERSION: str = "0.1.0"

    # Inspector Settings
    INSPECTOR_KIND: str = os.getenv("INSPECTOR_KIND", "PerformanceInspector")
    BASE_FILE_NAME: str = os.getenv("INSPECTOR_BASE_FILE_NAME", "point-matcher-output")
    DUMP_PERF_ON_EXIT: bool = os.getenv("INSPECTOR_DUMP_PERF_ON_EXIT", "false").lower() == "true"
    DUMP_ITERATION_INFO: bool = os.getenv("INSPECTOR_DUMP_ITERATION_INFO", "false").lower() == "true"

    # Histogram Settings
    HISTOGRAM_BIN_COUNT: int = int(os.getenv("INSPECTOR_HISTOGRAM_BIN_COUNT", 16))
    STATS_FILE_PREFIX: str = os.getenv("INSPECTOR_STATS_FILE_PREFIX", "")

    # Logging Settings
    LOG_FILE: Optional[str] = os.getenv("INSPECTOR_LOG_FILE")
    LOG_LEVEL: str = os.getenv("INSPECTOR_LOG_LEVEL", "INFO")


settings = Settings()


class InspectorParams(BaseModel):
    """Validated parameters shared by every inspector kind."""
    base_file_name: str = "point-matcher-output"
    dump_perf_on_exit: bool = False
    dump_iteration_info: bool = False
    bin_count: int = Field(default=16, gt=0)
    stats_file_prefix: str = ""

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "InspectorParams":
        return cls.from_dict({
            "base_file_name": source.BASE_FILE_NAME,
            "dump_perf_on_exit": source.DUMP_PERF_ON_EXIT,
            "dump_iteration_info": source.DUMP_ITERATION_INFO,
            "bin_count": source.HISTOGRAM_BIN_COUNT,
            "stats_file_prefix": source.STATS_FILE_PREFIX,
        })

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "InspectorParams":
        """Build parameters from a plain mapping, raising ConfigError on bad values."""
        try:
            return cls.model_validate(params)
        except ValidationError as e:
            raise ConfigError(f"Invalid inspector parameters: {e}") from e
