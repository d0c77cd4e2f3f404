from __future__ import annotations

import logging
import math
import re

from pathlib import Path
from typing import Iterable

from .calculator import (
    NULL_CALCULATOR,
    ParameterName,
    STRModelCalculator,
    STRModelParameter,
    SimpleSTRModelCalculator,
)
from .exceptions import ModelFileError
from .logger import get_main_logger

__all__ = [
    "PARAMETER_FILE_HEADER",
    "ParameterTable",
    "parse_parameter_lines",
    "load_parameter_file",
    "build_calculators",
    "load_calculators",
]


PARAMETER_FILE_HEADER = "unit_length\tparameter\tmaximum\tintercept\trepeat_count_coef"

RE_DIGIT_START = re.compile(r"^\d")
RE_UNIT_LENGTH = re.compile(r"^\d+$")
RE_UNIT_LENGTH_PLUS = re.compile(r"^\d+\+$")

# key: (unit length, parameter name)
ParameterTable = dict[tuple[int, ParameterName], STRModelParameter]


def _parse_float(path: Path, line_no: int, line: str, value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        raise ModelFileError(path, f"invalid double string: {value.strip()!r}", line_no, line)


def parse_parameter_lines(path: Path, lines: Iterable[str]) -> tuple[ParameterTable, int]:
    """
    Parses and validates the contents of an STR model parameter file.
    :param path: Path of the file, for error reporting only.
    :param lines: Lines of the file.
    :return: Tuple of (validated parameter table, maximum unit length found).
    """

    parameters: ParameterTable = {}
    max_unit_length_found: int = -1
    max_unit_length_declared: int = -1

    for line_no, raw_line in enumerate(lines, 1):
        line = raw_line.rstrip("\r\n")
        stripped = line.strip()

        if not stripped or stripped.startswith("#"):  # skip blank lines and comment lines
            continue

        parts = line.split("\t")
        while len(parts) > 1 and not parts[-1]:  # trailing empty fields are not counted
            parts.pop()

        if not RE_DIGIT_START.match(parts[0]):  # header?
            if stripped.lower() != PARAMETER_FILE_HEADER:
                raise ModelFileError(path, "unexpected header content", line_no, line)
            continue

        if len(parts) != 5:
            raise ModelFileError(path, f"we expect 5 values per line but we found {len(parts)}", line_no, line)

        unit_length_str = parts[0].strip()
        if RE_UNIT_LENGTH_PLUS.match(unit_length_str):
            unit_length = int(unit_length_str[:-1])
            if max_unit_length_declared < 0:
                max_unit_length_declared = unit_length
            elif max_unit_length_declared != unit_length:
                raise ModelFileError(
                    path,
                    f"there is more than one maximum unit length declared: {max_unit_length_declared} and "
                    f"{unit_length}",
                    line_no,
                    line)
        elif RE_UNIT_LENGTH.match(unit_length_str):
            unit_length = int(unit_length_str)
        else:
            raise ModelFileError(
                path, f"unit_length values must be a positive integer: {unit_length_str}", line_no, line)

        if unit_length <= 0:
            raise ModelFileError(path, f"unit_length must be greater than 0: {unit_length}", line_no, line)

        max_unit_length_found = max(max_unit_length_found, unit_length)

        parameter_str = parts[1].strip().lower()
        try:
            name = ParameterName(parameter_str)
        except ValueError:
            raise ModelFileError(path, f"unknown parameter: {parts[1].strip()}", line_no, line)

        maximum = _parse_float(path, line_no, line, parts[2])
        intercept = _parse_float(path, line_no, line, parts[3])
        repeat_count_coef = _parse_float(path, line_no, line, parts[4])

        if math.isnan(maximum) or maximum <= 0.0 or maximum > 1.0:
            raise ModelFileError(path, f"invalid maximum value: {maximum}", line_no, line)
        if not math.isfinite(intercept):
            raise ModelFileError(path, f"invalid intercept value: {intercept}", line_no, line)
        if not math.isfinite(repeat_count_coef):
            raise ModelFileError(path, f"invalid repeat count coef value: {repeat_count_coef}", line_no, line)

        key = (unit_length, name)
        if key in parameters:
            raise ModelFileError(path, f"repeated entry: ({unit_length}, {name.name})", line_no, line)

        parameters[key] = STRModelParameter(maximum, intercept, repeat_count_coef)

    if max_unit_length_found < 0:
        raise ModelFileError(path, "no entries found in file")

    if max_unit_length_declared >= 0 and max_unit_length_declared != max_unit_length_found:
        raise ModelFileError(
            path,
            f"the maximum unit length found ({max_unit_length_found}) is not the one declared with a '+' "
            f"({max_unit_length_declared})")

    # Check that there are no missing entries in the input
    for unit_length in range(1, max_unit_length_found + 1):
        for name in ParameterName:
            if (unit_length, name) not in parameters:
                raise ModelFileError(path, f"missing: ({unit_length}, {name.name})")

    return parameters, max_unit_length_found


def load_parameter_file(path: Path | str) -> tuple[ParameterTable, int]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_parameter_lines(path, fh)
    except (OSError, UnicodeDecodeError) as e:
        raise ModelFileError(path, str(e)) from e


def build_calculators(parameters: ParameterTable, max_unit_length: int) -> tuple[STRModelCalculator, ...]:
    """
    Builds calculators indexed by unit length; index 0 is always the null (pass-through) calculator.
    """
    return (NULL_CALCULATOR, *(
        SimpleSTRModelCalculator(
            parameters[(unit_length, ParameterName.PI)],
            parameters[(unit_length, ParameterName.TAU)],
            parameters[(unit_length, ParameterName.DEL)],
            parameters[(unit_length, ParameterName.INS)],
        )
        for unit_length in range(1, max_unit_length + 1)
    ))


def load_calculators(
    path: Path | str | None, logger: logging.Logger | None = None
) -> tuple[STRModelCalculator, ...]:
    logger = logger or get_main_logger()

    if path is None:
        logger.info("No STR model parameter file given; STR sites will be detected but not corrected")
        return NULL_CALCULATOR,

    parameters, max_unit_length = load_parameter_file(path)
    logger.info(f"Loaded STR model parameters for unit lengths 1-{max_unit_length} from {path}")
    return build_calculators(parameters, max_unit_length)
