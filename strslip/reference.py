from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pysam import FastaFile

__all__ = [
    "DEFAULT_WINDOW_PADDING",
    "GenomeLocus",
    "ReferenceContext",
]


DEFAULT_WINDOW_PADDING: int = 100


@dataclass(frozen=True)
class GenomeLocus:
    # 0-based, half-open - [start, end)
    contig: str
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.contig}:{self.start + 1}-{self.end}"


@dataclass(frozen=True)
class ReferenceContext:
    """
    Reference bases around a single-base locus. The window always contains the locus; forward bases run from the
    locus base (the VCF anchor base) to the end of the window.
    """

    locus: GenomeLocus
    window: GenomeLocus
    bases: str

    def __post_init__(self):
        if self.locus.contig != self.window.contig:
            raise ValueError(f"locus {self.locus} is not on the same contig as window {self.window}")
        if not (self.window.start <= self.locus.start < self.window.end):
            raise ValueError(f"locus {self.locus} falls outside of window {self.window}")
        if len(self.bases) != self.window.end - self.window.start:
            raise ValueError(
                f"window {self.window} spans {self.window.end - self.window.start} bases but {len(self.bases)} "
                f"were given")

    @property
    def locus_offset(self) -> int:
        return self.locus.start - self.window.start

    @property
    def base(self) -> str:
        return self.bases[self.locus_offset]

    @property
    def forward_bases(self) -> str:
        return self.bases[self.locus_offset:]

    @classmethod
    def from_bases(cls, contig: str, window_start: int, bases: str, locus_start: int) -> ReferenceContext:
        bases = bases.upper()
        return cls(
            locus=GenomeLocus(contig, locus_start, locus_start + 1),
            window=GenomeLocus(contig, window_start, window_start + len(bases)),
            bases=bases,
        )

    @classmethod
    def from_fasta(
        cls, fasta: FastaFile, contig: str, locus_start: int, padding: int = DEFAULT_WINDOW_PADDING
    ) -> ReferenceContext:
        """
        Builds a reference context from an indexed FASTA file, clipping the window to the contig bounds.
        :param fasta: An open pysam FastaFile.
        :param contig: Contig name, as it appears in the FASTA.
        :param locus_start: 0-based position of the locus (anchor) base.
        :param padding: Number of bases to include on either side of the locus.
        """
        contig_length = fasta.get_reference_length(contig)
        if not (0 <= locus_start < contig_length):
            raise ValueError(f"position {locus_start} is outside of contig {contig} (length {contig_length})")
        window_start = max(locus_start - padding, 0)
        window_end = min(locus_start + padding + 1, contig_length)
        return cls.from_bases(contig, window_start, fasta.fetch(contig, window_start, window_end), locus_start)
