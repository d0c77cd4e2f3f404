from __future__ import annotations

import logging

from typing import Sequence

from .allele import Allele, STRAllele, STRAlleleSet
from .context import STRContext, STRLogFile
from .likelihoods import AlleleLikelihoods
from .logger import get_main_logger
from .model import STRModel
from .reference import ReferenceContext
from .repeats import detect_repeat
from .variant import VariantSite

__all__ = [
    "STRContextComposer",
]


def _group_alleles(
    str_alleles: STRAlleleSet, seq_alleles: Sequence[Allele], ref_allele: Allele
) -> dict[STRAllele, list[Allele]]:
    groups: dict[STRAllele, list[Allele]] = {a: [] for a in str_alleles}
    for allele in seq_alleles:
        if allele.is_symbolic:
            continue
        groups[str_alleles.by_repeat_count(str_alleles.repeat_count_of(allele, ref_allele))].append(allele)
    return groups


class STRContextComposer:
    """
    Turns candidate variant sites into STR contexts, using a loaded model's detection thresholds. If a log file is
    given, every context composed from likelihoods or from a variant record is appended to it.
    """

    def __init__(self, model: STRModel, log_file: STRLogFile | None = None, logger: logging.Logger | None = None):
        self._model: STRModel = model
        self._log_file: STRLogFile | None = log_file
        self._logger: logging.Logger = logger or get_main_logger()

    @property
    def model(self) -> STRModel:
        return self._model

    def _dump(self, context: STRContext) -> None:
        self._logger.debug(f"Found STR {context}")
        if self._log_file is not None:
            self._log_file.write(context)

    def compose_context(self, reference: ReferenceContext) -> STRContext | None:
        """
        Composes an STR context from the reference alone.
        :return: None if there is no qualifying repeat right after the locus.
        """
        if reference is None:
            raise ValueError("the reference context cannot be None")

        detection = detect_repeat(reference, self._model.params)
        if detection is None:
            return None

        alleles = STRAlleleSet(reference.base, detection.unit, detection.repeat_count)
        return STRContext(reference.locus, None, alleles)

    def compose_context_from_likelihoods(
        self, reference: ReferenceContext, likelihoods: AlleleLikelihoods[Allele]
    ) -> STRContext | None:
        """
        Composes an STR context from the reference and likelihoods over sequence alleles, marginalizing the
        likelihoods into STR allele (repeat count) space.
        :return: None if the alleles do not describe a qualifying STR variant.
        """
        if reference is None:
            raise ValueError("the reference context cannot be None")
        if likelihoods is None:
            raise ValueError("the likelihoods cannot be None")

        ref_allele = next((a for a in likelihoods.alleles if a.is_reference), None)
        if ref_allele is None:
            raise ValueError("the input likelihoods must contain a reference allele")

        alleles = STRAlleleSet.from_allele_list(likelihoods.alleles, reference.forward_bases)
        if alleles is None or not self._model.allele_set_qualifies(alleles):
            return None

        str_likelihoods = likelihoods.marginalize(_group_alleles(alleles, likelihoods.alleles, ref_allele))

        result = STRContext(reference.locus, None, alleles, likelihoods=str_likelihoods)
        self._dump(result)
        return result

    def compose_context_from_variant(self, reference: ReferenceContext, variant: VariantSite) -> STRContext | None:
        """
        Composes an STR context from the reference and a variant record. Records with no alternate alleles (or only
        <NON_REF>) go through repeat detection on the reference; for the others, the repeat is inferred from the
        alleles and per-sample allele depths are summed into STR allele depths.
        :return: None if the site is not a qualifying STR.
        """
        if reference is None:
            raise ValueError("the reference context cannot be None")
        if variant is None:
            raise ValueError("the variant cannot be None")

        if variant.is_non_variant_block():
            detection = detect_repeat(reference, self._model.params)
            if detection is None:
                return None
            alleles = STRAlleleSet.from_reference_bases(reference.forward_bases, detection.unit_length)
            return STRContext(reference.locus, variant, alleles)

        seq_alleles = variant.alleles
        alleles = STRAlleleSet.from_allele_list(seq_alleles, reference.forward_bases, skip_symbolic=True)
        if alleles is None or not self._model.allele_set_qualifies(alleles):
            return None

        groups = _group_alleles(alleles, seq_alleles, variant.reference_allele)
        seq_depths = variant.summed_allele_depths()
        # Each STR allele takes the depth of the first sequence allele grouped into it.
        allele_depths = tuple(seq_depths[seq_alleles.index(groups[a][0])] for a in alleles)

        result = STRContext(reference.locus, variant, alleles, allele_depths=allele_depths)
        self._dump(result)
        return result
