from __future__ import annotations

from dataclasses import dataclass

from .params import STRModelParams
from .reference import ReferenceContext

__all__ = [
    "RepeatDetection",
    "count_unit_repeats",
    "detect_repeat",
]


@dataclass(frozen=True)
class RepeatDetection:
    unit: str
    repeat_count: int

    @property
    def unit_length(self) -> int:
        return len(self.unit)

    @property
    def total_length(self) -> int:
        return self.repeat_count * len(self.unit)


def count_unit_repeats(forward_bases: str, unit_length: int) -> int:
    """
    Counts contiguous copies of the unit which starts just after the anchor base (forward_bases[0]).
    :param forward_bases: Reference bases from the anchor base onwards.
    :param unit_length: Length of the repeat unit.
    :return: Number of copies of forward_bases[1:1 + unit_length], including the first one.
    """
    unit = forward_bases[1:1 + unit_length]
    repeats = 1
    for offset in range(1 + unit_length, len(forward_bases) - unit_length + 1, unit_length):
        if forward_bases[offset:offset + unit_length] != unit:
            break
        repeats += 1
    return repeats


def detect_repeat(reference: ReferenceContext, params: STRModelParams) -> RepeatDetection | None:
    """
    Looks for the shortest tandem repeat unit starting right after the locus base which satisfies the minimum repeat
    count and minimum total length thresholds.
    :param reference: Reference context at the candidate site.
    :param params: Model configuration holding the detection thresholds.
    :return: The detected repeat, or None if there is no qualifying repeat at this site.
    """

    forward_bases = reference.forward_bases
    window_bases = reference.bases

    for unit_length in range(1, params.maximum_unit_length + 1):
        if unit_length >= len(forward_bases) - 1:  # reached the end of the window/contig
            break

        unit = forward_bases[1:1 + unit_length]

        # If the bases ending at the anchor already spell out the unit, this repeat starts further to the left and
        # will have been picked up at an earlier site.
        previous_offset = reference.locus_offset - unit_length + 1
        if previous_offset >= 0 and window_bases[previous_offset:previous_offset + unit_length] == unit:
            continue

        repeats = count_unit_repeats(forward_bases, unit_length)
        if repeats >= params.minimum_repeat_count and repeats * unit_length >= params.minimum_repeat_total_length:
            return RepeatDetection(unit, repeats)

    return None
