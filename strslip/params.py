from __future__ import annotations

from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "DEFAULT_MINIMUM_REPEAT_TOTAL_LENGTH",
    "DEFAULT_MAXIMUM_UNIT_LENGTH",
    "DEFAULT_MINIMUM_REPEAT_COUNT",
    "STRModelParams",
]


DEFAULT_MINIMUM_REPEAT_TOTAL_LENGTH: int = 10
DEFAULT_MAXIMUM_UNIT_LENGTH: int = 10
DEFAULT_MINIMUM_REPEAT_COUNT: int = 2


class STRModelParams(BaseModel):
    """
    Immutable configuration for the STR error model: where to find the pre-calculated model parameters, the
    thresholds a site has to meet to be considered an STR, and an optional path for the long-form context log.
    """

    model_config = ConfigDict(frozen=True)

    parameter_file: Path | None = None
    minimum_repeat_total_length: int = Field(default=DEFAULT_MINIMUM_REPEAT_TOTAL_LENGTH, ge=0)
    maximum_unit_length: int = Field(default=DEFAULT_MAXIMUM_UNIT_LENGTH, ge=1)
    minimum_repeat_count: int = Field(default=DEFAULT_MINIMUM_REPEAT_COUNT, ge=1)
    log_file: Path | None = None

    @classmethod
    def from_args(cls, p_args):
        return cls(
            parameter_file=getattr(p_args, "str_model", None),
            minimum_repeat_total_length=p_args.str_min_length,
            maximum_unit_length=p_args.str_max_unit,
            minimum_repeat_count=p_args.str_min_count,
            log_file=getattr(p_args, "str_log", None),
        )

    def to_dict(self):
        return {
            "parameter_file": str(self.parameter_file) if self.parameter_file else None,
            "minimum_repeat_total_length": self.minimum_repeat_total_length,
            "maximum_unit_length": self.maximum_unit_length,
            "minimum_repeat_count": self.minimum_repeat_count,
            "log_file": str(self.log_file) if self.log_file else None,
        }
