from dataclasses import dataclass


@dataclass(frozen=True)
class Files2PromptError(Exception):
    """Base exception for errors in the files2prompt module."""


@dataclass(frozen=True)
class PathNotFoundError(Files2PromptError):
    """Raised when a root path given to the run does not exist."""

    path: str
    message: str = "Path does not exist"

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass(frozen=True)
class OutputClosedError(Files2PromptError):
    """Raised when the output destination can no longer be written to (e.g. broken pipe)."""


@dataclass(frozen=True)
class InvalidSizeError(Files2PromptError, ValueError):
    """Raised when a size string such as ``10k`` cannot be parsed."""

    value: str
    message: str = "Invalid size, expected an integer with an optional k/m/g suffix"

    def __str__(self) -> str:
        return f"{self.message}: {self.value!r}"
