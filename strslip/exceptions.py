from __future__ import annotations

from pathlib import Path

__all__ = [
    "ParamError",
    "InputError",
    "ModelFileError",
    "STRLogError",
]


class ParamError(Exception):
    pass


class InputError(Exception):
    pass


class ModelFileError(InputError):
    """
    Raised when an STR model parameter file cannot be read or fails validation. Carries the file path and, where the
    problem is tied to a specific line, the 1-based line number and its content.
    """

    def __init__(self, path: Path | str, message: str, line_no: int | None = None, line: str | None = None):
        self.path: Path = Path(path)
        self.message: str = message
        self.line_no: int | None = line_no
        self.line: str | None = line

        location = f"{self.path}" if line_no is None else f"{self.path}:{line_no}"
        detail = f" (line content: {line!r})" if line is not None else ""
        super().__init__(f"Could not read STR model file {location}: {message}{detail}")


class STRLogError(RuntimeError):
    pass
