"""
Pydantic models for slashform configuration validation.
"""

from typing import Optional
from pathlib import Path
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseModel):
    """Application-level configuration settings."""

    name: str = Field(default="slashform", min_length=1, description="Application display name")
    version: str = Field(default="0.1.0", min_length=1, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")
    verbose_logging: bool = Field(default=False, description="Enable verbose debug logging")

    log_file: Optional[str] = Field(default=None, description="JSON log file location, disabled when unset")
    max_log_size_mb: int = Field(default=10, ge=1, le=1000, description="Maximum log file size")
    backup_count: int = Field(default=5, ge=1, le=100, description="Number of backup log files")

    @field_validator('log_file')
    @classmethod
    def expand_path(cls, v):
        """Expand user home directory in paths."""
        if v is None:
            return v
        return str(Path(v).expanduser())


class ParserConfig(BaseModel):
    """Command parser behaviour."""

    call_timeout_seconds: Optional[float] = Field(
        default=None, gt=0.0, le=600.0,
        description="Timeout applied to remote app calls and lookups; no timeout when unset"
    )
    user_hint: str = Field(default="@username", description="Hint shown for an empty user field")
    channel_hint: str = Field(default="~channelname", description="Hint shown for an empty channel field")
    execute_item_id: str = Field(
        default="_execute_current_command",
        min_length=1,
        description="Marker appended to the completion of the execute-now suggestion"
    )
    messages_file: Optional[str] = Field(default=None, description="YAML file overriding message templates; {locale} selects a per-locale file")
    locale: str = Field(default="en", description="Locale substituted into messages_file")

    @field_validator('messages_file')
    @classmethod
    def expand_messages_file(cls, v):
        if v is None:
            return v
        return str(Path(v).expanduser())


class SlashFormConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    app: AppConfig = Field(default_factory=AppConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
