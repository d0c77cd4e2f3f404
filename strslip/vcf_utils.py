from dataclasses import dataclass
from pysam import VariantHeader

__all__ = [
    "VcfInfo",
    "VCF_INFO_STR_UNIT",
    "add_str_header_lines",
]


@dataclass(frozen=True)
class VcfInfo:
    key: str
    n: int | str  # number of values in record row
    type: str  # VCF type
    description: str

    def header_line(self) -> str:
        # Built by hand, since pysam's metadata add() does not accept the Character type
        return f'##INFO=<ID={self.key},Number={self.n},Type={self.type},Description="{self.description}">'


VCF_INFO_STR_UNIT = VcfInfo("STRUnit", 1, "Character", "STR repeat unit")


def add_str_header_lines(vh: VariantHeader, lines: tuple[VcfInfo, ...] = (VCF_INFO_STR_UNIT,)) -> VariantHeader:
    """
    Merges the STR model's INFO header lines into a variant header via mutation, skipping keys already present.
    :param vh: The variant header to add to.
    :param lines: INFO lines to add.
    :return: The same (mutated) header.
    """
    for line in lines:
        if line.key not in vh.info:
            vh.add_line(line.header_line())
    return vh
