from __future__ import annotations

import itertools
import math
import numpy as np

from numpy.typing import NDArray
from scipy.special import logsumexp
from typing import Generic, Hashable, Mapping, Sequence, TypeVar

from .calculator import LOG10_ZERO

__all__ = [
    "log10_sum_log10",
    "genotype_allele_indices",
    "AlleleLikelihoods",
]


A = TypeVar("A", bound=Hashable)
B = TypeVar("B", bound=Hashable)

LN_10 = math.log(10.0)


def log10_sum_log10(values: NDArray[np.float64], axis: int = -1) -> NDArray[np.float64]:
    """
    log10(sum(10 ** values)) along an axis, without leaving log space.
    """
    return logsumexp(values * LN_10, axis=axis) / LN_10


def genotype_allele_indices(n_alleles: int, ploidy: int) -> tuple[tuple[int, ...], ...]:
    """
    Allele index tuples for every unordered genotype, in VCF genotype order (e.g. 0/0, 0/1, 1/1, 0/2, ... for
    diploids).
    """
    genotypes = itertools.combinations_with_replacement(range(n_alleles), ploidy)
    return tuple(sorted(genotypes, key=lambda g: tuple(reversed(g))))


class AlleleLikelihoods(Generic[A]):
    """
    Per-sample matrices of log10 likelihoods, one row per piece of evidence (e.g. a read) and one column per allele.
    """

    def __init__(self, alleles: Sequence[A], samples: Sequence[str], values: Sequence[NDArray[np.float64]]):
        if len(samples) != len(values):
            raise ValueError(f"got {len(samples)} samples but {len(values)} likelihood matrices")
        if len(set(alleles)) != len(alleles):
            raise ValueError("alleles must be unique")

        self._alleles: tuple[A, ...] = tuple(alleles)
        self._allele_indices: dict[A, int] = {a: i for i, a in enumerate(self._alleles)}
        self._samples: tuple[str, ...] = tuple(samples)
        self._values: tuple[NDArray[np.float64], ...] = tuple(
            np.asarray(v, dtype=np.float64).reshape(-1, len(self._alleles)) for v in values)

    @property
    def alleles(self) -> tuple[A, ...]:
        return self._alleles

    @property
    def samples(self) -> tuple[str, ...]:
        return self._samples

    def allele_count(self) -> int:
        return len(self._alleles)

    def allele_index(self, allele: A) -> int:
        return self._allele_indices[allele]

    def sample_matrix(self, sample: str | int) -> NDArray[np.float64]:
        idx = sample if isinstance(sample, int) else self._samples.index(sample)
        return self._values[idx]

    def marginalize(self, new_to_old: Mapping[B, Sequence[A]]) -> AlleleLikelihoods[B]:
        """
        Groups alleles into a new allele space; each new allele takes the best likelihood among the old alleles
        grouped into it.
        :param new_to_old: Ordered mapping of {new allele: [old alleles]}.
        """
        new_alleles = tuple(new_to_old.keys())
        old_indices = [[self._allele_indices[a] for a in new_to_old[b]] for b in new_alleles]

        new_values = []
        for v in self._values:
            nv = np.full((v.shape[0], len(new_alleles)), LOG10_ZERO)
            for k, idx in enumerate(old_indices):
                if idx:
                    nv[:, k] = np.max(v[:, idx], axis=1)
            new_values.append(nv)

        return AlleleLikelihoods(new_alleles, self._samples, new_values)

    def transform(self, new_alleles: Sequence[B], log10_matrix: NDArray[np.float64]) -> AlleleLikelihoods[B]:
        """
        Re-expresses the likelihoods in terms of a new allele space of the same size:
            new[e, a] = log10(sum_o 10^(old[e, o] + log10_matrix[a, o]))
        i.e. row a of the matrix holds the log10 probabilities of observing each old allele given new allele a.
        """
        log10_matrix = np.asarray(log10_matrix, dtype=np.float64)
        n = len(self._alleles)
        if log10_matrix.shape != (n, n) or len(new_alleles) != n:
            raise ValueError(
                f"cannot transform {n} alleles with a {log10_matrix.shape} matrix into {len(new_alleles)} alleles")

        # (evidence, 1, old) + (1, new, old) -> sum out old
        new_values = [log10_sum_log10(v[:, np.newaxis, :] + log10_matrix[np.newaxis, :, :], axis=2)
                      for v in self._values]
        return AlleleLikelihoods(new_alleles, self._samples, new_values)

    def genotype_log10_likelihoods(self, sample: str | int, ploidy: int = 2) -> NDArray[np.float64]:
        """
        Combines per-evidence allele likelihoods into genotype likelihoods, assuming each piece of evidence comes from
        any of the genotype's alleles with equal probability.
        :return: Array of log10 genotype likelihoods in VCF genotype order.
        """
        v = self.sample_matrix(sample)
        genotypes = genotype_allele_indices(len(self._alleles), ploidy)
        result = np.empty(len(genotypes))
        for g_idx, genotype in enumerate(genotypes):
            per_evidence = log10_sum_log10(v[:, list(genotype)], axis=1) - math.log10(ploidy)
            result[g_idx] = np.sum(per_evidence)
        return result

    def __repr__(self) -> str:
        return (f"AlleleLikelihoods(alleles=[{', '.join(map(str, self._alleles))}], "
                f"samples={list(self._samples)}, evidence={[v.shape[0] for v in self._values]})")
