from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from .repeats import count_unit_repeats

__all__ = [
    "NON_REF_SYMBOLIC_ALLELE",
    "Allele",
    "STRAllele",
    "STRAlleleSet",
]


NON_REF_SYMBOLIC_ALLELE = "<NON_REF>"


@dataclass(frozen=True)
class Allele:
    bases: str
    is_reference: bool = False

    @property
    def is_symbolic(self) -> bool:
        # <DEL>, <NON_REF>, breakends and the spanning-deletion/missing placeholders
        return (
            self.bases.startswith("<")
            or "[" in self.bases
            or "]" in self.bases
            or self.bases in ("*", ".")
        )

    def __len__(self) -> int:
        return len(self.bases)

    def __str__(self) -> str:
        return f"{self.bases}*" if self.is_reference else self.bases


@dataclass(frozen=True)
class STRAllele:
    repeat_count: int
    unit: str

    @property
    def bases(self) -> str:
        return self.unit * self.repeat_count

    def __str__(self) -> str:
        return f"({self.unit}){self.repeat_count}"


def _smallest_period(seq: str) -> int:
    n = len(seq)
    for p in range(1, n + 1):
        if n % p == 0 and seq[:p] * (n // p) == seq:
            return p
    return n


class STRAlleleSet:
    """
    Ordered, de-duplicated set of STR alleles for a site. Alleles are sorted by (and unique on) repeat count; the
    reference repeat count is always part of the set.
    """

    def __init__(self, anchor: str, unit: str, reference_repeat_count: int, repeat_counts: Iterable[int] = ()):
        if not unit:
            raise ValueError("the repeat unit cannot be empty")

        counts = sorted({reference_repeat_count, *repeat_counts})
        if counts[0] < 0:
            raise ValueError(f"repeat counts must be non-negative; got {counts[0]}")

        self._anchor: str = anchor
        self._unit: str = unit
        self._reference_repeat_count: int = reference_repeat_count
        self._alleles: tuple[STRAllele, ...] = tuple(STRAllele(c, unit) for c in counts)
        self._by_repeat_count: dict[int, STRAllele] = {a.repeat_count: a for a in self._alleles}
        self._indices: dict[STRAllele, int] = {a: i for i, a in enumerate(self._alleles)}

    @property
    def anchor(self) -> str:
        return self._anchor

    @property
    def unit(self) -> str:
        return self._unit

    @property
    def unit_length(self) -> int:
        return len(self._unit)

    @property
    def reference_repeat_count(self) -> int:
        return self._reference_repeat_count

    @property
    def reference_allele(self) -> STRAllele:
        return self._by_repeat_count[self._reference_repeat_count]

    @property
    def repeat_counts(self) -> tuple[int, ...]:
        return tuple(a.repeat_count for a in self._alleles)

    @property
    def max_repeat_count(self) -> int:
        return self._alleles[-1].repeat_count

    @property
    def max_total_length(self) -> int:
        return self.max_repeat_count * self.unit_length

    def __len__(self) -> int:
        return len(self._alleles)

    def __iter__(self) -> Iterator[STRAllele]:
        return iter(self._alleles)

    def __getitem__(self, index: int) -> STRAllele:
        return self._alleles[index]

    def by_repeat_count(self, repeat_count: int) -> STRAllele | None:
        return self._by_repeat_count.get(repeat_count)

    def index_of(self, allele: STRAllele) -> int:
        return self._indices[allele]

    def repeat_count_of(self, allele: Allele, ref_allele: Allele) -> int:
        """
        Repeat count of an allele, given the allele it should be compared with in the reference.
        Assumes the length difference between the two is a multiple of the unit length.
        """
        return self._reference_repeat_count + (len(allele) - len(ref_allele)) // self.unit_length

    def map_allele(self, ref_allele: Allele, repeat_count: int) -> Allele:
        """
        Renders a repeat count as an allele relative to a reference allele, by inserting or removing whole repeat
        units right after the anchor base.
        :param ref_allele: The reference allele of the output allele space; its first base is the anchor.
        :param repeat_count: The repeat count to express.
        :return: The reference allele itself for the reference repeat count, otherwise a new alternate allele.
        """
        diff = repeat_count - self._reference_repeat_count
        if diff == 0:
            return Allele(ref_allele.bases, is_reference=True)
        if diff > 0:
            return Allele(ref_allele.bases[:1] + self._unit * diff + ref_allele.bases[1:])

        to_remove = -diff * self.unit_length
        if to_remove > len(ref_allele) - 1:
            raise ValueError(
                f"reference allele {ref_allele.bases} is too short to represent {repeat_count} copies of "
                f"{self._unit} (reference repeat count: {self._reference_repeat_count})")
        return Allele(ref_allele.bases[:1] + ref_allele.bases[1 + to_remove:])

    def __repr__(self) -> str:
        return f"STRAlleleSet(unit={self._unit!r}, ref={self._reference_repeat_count}, counts={self.repeat_counts})"

    def __str__(self) -> str:
        return f"({self._unit})[{','.join(map(str, self.repeat_counts))}]"

    @classmethod
    def from_reference_bases(cls, forward_bases: str, unit_length: int) -> STRAlleleSet:
        """
        Builds a reference-only allele set from reference bases, starting at the anchor base.
        """
        return cls(forward_bases[0], forward_bases[1:1 + unit_length], count_unit_repeats(forward_bases, unit_length))

    @classmethod
    def from_allele_list(
        cls, alleles: Sequence[Allele], forward_bases: str, skip_symbolic: bool = False
    ) -> STRAlleleSet | None:
        """
        Infers the repeat unit from a reference + alternates allele list and builds the corresponding allele set.
        :param alleles: Alleles sharing their first (anchor) base; exactly one must be the reference.
        :param forward_bases: Reference bases from the anchor base onwards.
        :param skip_symbolic: Whether to ignore symbolic alternates rather than giving up on the site.
        :return: The allele set, or None if the alleles do not describe a change in a tandem repeat.
        """

        ref_allele = next((a for a in alleles if a.is_reference), None)
        if ref_allele is None:
            raise ValueError("the input alleles must contain a reference allele")

        sequence_alts: list[Allele] = []
        for allele in alleles:
            if allele.is_reference:
                continue
            if allele.is_symbolic:
                if skip_symbolic:
                    continue
                return None
            sequence_alts.append(allele)

        ref_length = len(ref_allele)
        indels = [a for a in sequence_alts if len(a) != ref_length]
        if not indels:
            return None

        shortest = min(indels, key=lambda a: abs(len(a) - ref_length))
        length_diff = len(shortest) - ref_length
        if length_diff > 0:
            indel_seq = shortest.bases[1:1 + length_diff].upper()
        else:
            indel_seq = ref_allele.bases[1:1 - length_diff].upper()

        unit_length = _smallest_period(indel_seq)
        unit = forward_bases[1:1 + unit_length]
        if len(unit) < unit_length or indel_seq != unit * (len(indel_seq) // unit_length):
            return None

        reference_repeat_count = count_unit_repeats(forward_bases, unit_length)

        repeat_counts: list[int] = []
        for allele in sequence_alts:
            diff = len(allele) - ref_length
            if diff % unit_length:
                return None
            repeat_count = reference_repeat_count + diff // unit_length
            if repeat_count < 0:
                return None
            repeat_counts.append(repeat_count)

        return cls(forward_bases[0], unit, reference_repeat_count, repeat_counts)
