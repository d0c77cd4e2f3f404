from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .allele import NON_REF_SYMBOLIC_ALLELE, Allele

if TYPE_CHECKING:
    from pysam import VariantRecord

__all__ = [
    "SampleGenotype",
    "VariantSite",
]


@dataclass(frozen=True)
class SampleGenotype:
    sample: str
    alleles: tuple[int | None, ...] = ()
    ad: tuple[int, ...] | None = None

    @property
    def has_ad(self) -> bool:
        return self.ad is not None


@dataclass(frozen=True)
class VariantSite:
    """
    The parts of a variant record the STR model needs: position, alleles (reference first) and per-sample genotypes
    with allele depths.
    """

    contig: str
    start: int  # 0-based position of the first reference base
    alleles: tuple[Allele, ...]
    genotypes: tuple[SampleGenotype, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.alleles or not self.alleles[0].is_reference:
            raise ValueError("the first allele of a variant site must be the reference allele")

    @property
    def reference_allele(self) -> Allele:
        return self.alleles[0]

    @property
    def alternate_alleles(self) -> tuple[Allele, ...]:
        return self.alleles[1:]

    def is_non_variant_block(self) -> bool:
        """
        Whether the record carries no real alternate alleles, e.g. a gVCF reference block with just <NON_REF>.
        """
        alts = self.alternate_alleles
        return not alts or (len(alts) == 1 and alts[0].bases == NON_REF_SYMBOLIC_ALLELE)

    def summed_allele_depths(self) -> list[int]:
        depths = [0] * len(self.alleles)
        for genotype in self.genotypes:
            if genotype.has_ad:
                for i, d in enumerate(genotype.ad[:len(depths)]):
                    depths[i] += d or 0
        return depths

    @classmethod
    def from_pysam(cls, record: VariantRecord) -> VariantSite:
        alleles = (
            Allele(record.ref.upper(), is_reference=True),
            *(Allele(a if a.startswith("<") else a.upper()) for a in (record.alts or ())),
        )

        genotypes: list[SampleGenotype] = []
        has_ad = "AD" in record.format
        for sample_id, sample in record.samples.items():
            ad = sample.get("AD") if has_ad else None
            genotypes.append(SampleGenotype(
                sample=sample_id,
                alleles=tuple(sample.get("GT") or ()),
                ad=tuple(d or 0 for d in ad) if ad is not None and any(d is not None for d in ad) else None,
            ))

        return cls(record.contig, record.start, alleles, tuple(genotypes))
