"""Pydantic input models for the MCP tools."""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
#  Read-oriented models (include concise toggle for token efficiency)
# ---------------------------------------------------------------------------


class ReadParams(BaseModel):
    """Base for read-only tools, includes output-format flag."""

    model_config = ConfigDict(extra="forbid")
    instance: str | None = Field(
        None, description="Instance name. Omit if only one instance is configured."
    )
    concise: bool = Field(
        True,
        description="Compact output (default). Set false for full details.",
    )


class FolderReadParams(ReadParams):
    """Read tool that targets a single folder."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    folder_id: str = Field(
        ..., description="Syncthing folder ID (e.g. 'abcd-1234')", min_length=1
    )


class DeviceReadParams(ReadParams):
    """Read tool that targets a single device, by ID or by name."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    device: str = Field(
        ...,
        description="Syncthing device ID or configured device name",
        min_length=1,
    )


class NotificationsInput(ReadParams):
    model_config = ConfigDict(extra="forbid")
    mark_read: bool = Field(
        False, description="Clear the unread flag after listing the notifications."
    )
    limit: int = Field(50, ge=1, le=1000, description="Most recent notifications to return.")


class LogInput(ReadParams):
    model_config = ConfigDict(extra="forbid")
    limit: int = Field(100, ge=1, le=1000, description="Most recent log lines to return.")


# ---------------------------------------------------------------------------
#  Write-oriented models (no concise flag, output is always minimal)
# ---------------------------------------------------------------------------


class WriteParams(BaseModel):
    """Base for write/mutating tools."""

    model_config = ConfigDict(extra="forbid")
    instance: str | None = Field(
        None, description="Instance name. Omit if only one instance is configured."
    )


class FolderWriteParams(WriteParams):
    """Write tool that targets a single folder."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    folder_id: str = Field(
        ..., description="Syncthing folder ID", min_length=1
    )


class DeviceWriteParams(WriteParams):
    """Write tool that targets a single device."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    device_id: str = Field(
        ..., description="Syncthing device ID", min_length=1
    )
