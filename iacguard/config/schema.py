"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from iacguard.config.defaults import DEFAULT_CHECKS, DEFAULT_LOG_LEVEL, DEFAULT_SCAN


class ChecksConfig(BaseModel):
    """Which checks run and where user-defined rules come from."""

    model_config = ConfigDict(extra="ignore")

    disabled: list[str] = Field(default_factory=list)
    terraform_fmt: bool = bool(DEFAULT_CHECKS["terraform_fmt"])
    terraform_fmt_timeout_s: float = Field(default=float(DEFAULT_CHECKS["terraform_fmt_timeout_s"]), gt=0)
    rules_path: str | None = None

    @property
    def rules_file(self) -> Path | None:
        if not self.rules_path:
            return None
        return Path(self.rules_path).expanduser()


class ScanConfig(BaseModel):
    """Bounds on filesystem reads."""

    model_config = ConfigDict(extra="ignore")

    max_file_bytes: int = Field(default=int(DEFAULT_SCAN["max_file_bytes"]), ge=1)
    max_depth: int = Field(default=int(DEFAULT_SCAN["max_depth"]), ge=0)


class Config(BaseSettings):
    """Root configuration for iacguard."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, env_prefix="IACGUARD_", env_nested_delimiter="__")

    enabled: bool = True
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = DEFAULT_LOG_LEVEL
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
