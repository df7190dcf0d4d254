from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from files2prompt.config import OutputFormat, normalize_extension
from files2prompt.file_manipulation import parse_size


class Settings(BaseModel):
    """Configuration settings for one files2prompt invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    paths: list[str] = Field(default_factory=list, description="Files or directories to export.")
    extension: list[str] = Field(default_factory=list, description="Keep only these extensions.")
    include_hidden: bool = Field(default=False, description="Include files and folders starting with '.'.")
    ignore_files_only: bool = Field(default=False, description="--ignore patterns only ignore files.")
    ignore_gitignore: bool = Field(default=False, description="Ignore .gitignore files.")
    ignore: list[str] = Field(default_factory=list, description="Basename globs to ignore.")
    output: str = Field(default="", description="Output file, stdout when empty.")
    format: OutputFormat = Field(default=OutputFormat.DEFAULT, description="Output format.")
    line_numbers: bool = Field(default=False, description="Add line numbers to content.")
    null: bool = Field(default=False, description="Stdin paths are NUL separated.")
    relative: bool = Field(default=False, description="Display paths relative to cwd.")
    quiet: bool = Field(default=False, description="Suppress warnings.")
    max_files: int | None = Field(default=None, ge=0, description="Maximum number of files to process.")
    max_size: int | None = Field(default=None, ge=0, description="Maximum file size in bytes.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("extension", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: list[str] | None) -> list[str]:
        return [normalize_extension(e) for e in (value or []) if e and e.strip()]

    @field_validator("max_size", mode="before")
    @classmethod
    def _parse_max_size(cls, value: int | str | None) -> int | None:
        if isinstance(value, str):
            return parse_size(value)
        return value
