from __future__ import annotations

import logging
import numpy as np

from numpy.typing import NDArray

from .allele import Allele, STRAlleleSet
from .calculator import LOG10_ZERO, NULL_CALCULATOR, STRModelCalculator
from .context import STRContext
from .likelihoods import AlleleLikelihoods
from .logger import get_main_logger
from .parameters import load_calculators
from .params import STRModelParams
from .vcf_utils import VCF_INFO_STR_UNIT, VcfInfo

__all__ = [
    "STRModel",
    "log10_identity_matrix",
]


def log10_identity_matrix(n: int) -> NDArray[np.float64]:
    m = np.full((n, n), LOG10_ZERO)
    np.fill_diagonal(m, 0.0)
    return m


class STRModel:
    """
    STR amplification error model. Holds the configuration and the per-unit-length calculators; both are fixed
    once the model is loaded, so a model can be shared freely.
    """

    def __init__(
        self,
        params: STRModelParams,
        calculators: tuple[STRModelCalculator, ...] = (NULL_CALCULATOR,),
        logger: logging.Logger | None = None,
    ):
        if not calculators:
            raise ValueError("at least one calculator is required")
        self._params: STRModelParams = params
        self._calculators: tuple[STRModelCalculator, ...] = tuple(calculators)
        self._logger: logging.Logger = logger or get_main_logger()

    @classmethod
    def load(cls, params: STRModelParams, logger: logging.Logger | None = None) -> STRModel:
        """
        Loads the model described by a configuration, reading and validating its parameter file if one is given.
        :raises ModelFileError: if the parameter file cannot be read or is invalid.
        """
        return cls(params, load_calculators(params.parameter_file, logger=logger), logger=logger)

    @property
    def params(self) -> STRModelParams:
        return self._params

    @property
    def calculators(self) -> tuple[STRModelCalculator, ...]:
        return self._calculators

    @property
    def max_unit_length(self) -> int:
        return len(self._calculators) - 1

    @property
    def is_null(self) -> bool:
        return all(c.is_null for c in self._calculators)

    def calculator_for(self, unit_length: int) -> STRModelCalculator:
        # Unit lengths beyond the end of the table use the calculator for the longest unit length available.
        return self._calculators[min(unit_length, len(self._calculators) - 1)]

    def for_context(self, context: STRContext) -> STRModelCalculator:
        return self.calculator_for(context.alleles.unit_length)

    def allele_set_qualifies(self, alleles: STRAlleleSet) -> bool:
        if alleles.unit_length > self._params.maximum_unit_length:
            return False
        elif alleles.max_repeat_count < self._params.minimum_repeat_count:
            return False
        elif alleles.max_total_length < self._params.minimum_repeat_total_length:
            return False
        return True

    def log10_transformation_matrix(self, context: STRContext) -> NDArray[np.float64]:
        """
        Matrix of log10 transition coefficients over the context's STR alleles: entry [i, j] is the log10 probability
        of observing allele j's repeat count when allele i's repeat count is the true one.
        """
        calculator = self.for_context(context)
        alleles = context.alleles
        n = len(alleles)

        result = np.empty((n, n), dtype=np.float64)
        for i in range(n):
            i_rc = alleles[i].repeat_count
            result[i, i] = calculator.log10_coefficient(i_rc, i_rc)
            for j in range(i + 1, n):
                j_rc = alleles[j].repeat_count
                result[i, j] = calculator.log10_coefficient(i_rc, j_rc)
                result[j, i] = calculator.log10_coefficient(j_rc, i_rc)

        return result

    def transform_likelihoods(self, context: STRContext, ref_allele: Allele) -> AlleleLikelihoods[Allele]:
        """
        Corrects a context's likelihoods for stutter and expresses them in the caller's allele space.
        :param context: An STR context carrying likelihoods over its STR alleles.
        :param ref_allele: The reference allele of the output allele space.
        :return: Likelihoods over one output allele per STR allele, in the same order.
        """
        if context.likelihoods is None:
            raise ValueError(f"the STR context at {context.locus} does not carry likelihoods")

        output_alleles = [context.alleles.map_allele(ref_allele, a.repeat_count) for a in context.alleles]

        if self.is_null:
            matrix = log10_identity_matrix(len(output_alleles))
        else:
            matrix = self.log10_transformation_matrix(context)

        return context.likelihoods.transform(output_alleles, matrix)

    @staticmethod
    def vcf_header_lines() -> tuple[VcfInfo, ...]:
        """
        VCF INFO header lines for the annotations that may appear in a VCF when applying this model.
        """
        return VCF_INFO_STR_UNIT,
