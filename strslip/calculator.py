from __future__ import annotations

import math
import numpy as np

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from scipy.special import expit

__all__ = [
    "LOG10_ZERO",
    "ParameterName",
    "STRModelParameter",
    "STRModelCalculator",
    "NullSTRModelCalculator",
    "SimpleSTRModelCalculator",
    "NULL_CALCULATOR",
]


LOG10_ZERO: float = -np.inf

# Keeps the geometric step-size distribution proper when tau rounds up to 1.
MAX_TAU: float = 1.0 - 1e-12


def _log10(x: float) -> float:
    return math.log10(x) if x > 0.0 else LOG10_ZERO


class ParameterName(str, Enum):
    PI = "pi"
    TAU = "tau"
    DEL = "del"
    INS = "ins"


@dataclass(frozen=True)
class STRModelParameter:
    """
    One regression curve of the model: a logistic function of the repeat count, scaled to (0, maximum].
    """

    maximum: float
    intercept: float
    repeat_count_coef: float

    def __post_init__(self):
        if math.isnan(self.maximum) or self.maximum <= 0.0 or self.maximum > 1.0:
            raise ValueError(f"invalid maximum value: {self.maximum}")
        if not math.isfinite(self.intercept):
            raise ValueError(f"invalid intercept value: {self.intercept}")
        if not math.isfinite(self.repeat_count_coef):
            raise ValueError(f"invalid repeat count coef value: {self.repeat_count_coef}")

    def value_at(self, repeat_count: int) -> float:
        return self.maximum * float(expit(self.intercept + self.repeat_count_coef * repeat_count))


class STRModelCalculator(ABC):
    @property
    @abstractmethod
    def is_null(self) -> bool:
        pass

    @abstractmethod
    def log10_coefficient(self, true_repeat_count: int, observed_repeat_count: int) -> float:
        """
        log10 of the probability of observing a repeat count given the true repeat count of the template.
        """


class NullSTRModelCalculator(STRModelCalculator):
    """
    Pass-through model: repeat counts are always observed as they are.
    """

    @property
    def is_null(self) -> bool:
        return True

    def log10_coefficient(self, true_repeat_count: int, observed_repeat_count: int) -> float:
        return 0.0 if true_repeat_count == observed_repeat_count else LOG10_ZERO

    def __repr__(self) -> str:
        return "NullSTRModelCalculator()"


NULL_CALCULATOR = NullSTRModelCalculator()


class SimpleSTRModelCalculator(STRModelCalculator):
    """
    Stutter model built from four regression curves evaluated at the true repeat count i:
     - pi: probability of observing exactly i,
     - tau: geometric decay of the stutter step size (k >= 1 units away has weight (1 - tau) * tau^(k-1)),
     - del/ins: relative weights of contractions vs. expansions.
    Contraction steps are truncated at zero repeats and re-normalized, so every row is a distribution over j >= 0.
    """

    def __init__(
        self, pi: STRModelParameter, tau: STRModelParameter, del_: STRModelParameter, ins: STRModelParameter
    ):
        self.pi: STRModelParameter = pi
        self.tau: STRModelParameter = tau
        self.del_: STRModelParameter = del_
        self.ins: STRModelParameter = ins

    @property
    def is_null(self) -> bool:
        return False

    def log10_coefficient(self, true_repeat_count: int, observed_repeat_count: int) -> float:
        i = true_repeat_count
        j = observed_repeat_count

        if i < 0 or j < 0:
            return LOG10_ZERO

        pi = self.pi.value_at(i)
        if i == j:
            return _log10(pi)

        tau = min(self.tau.value_at(i), MAX_TAU)
        del_w = self.del_.value_at(i)
        ins_w = self.ins.value_at(i)

        if i == 0:  # no contraction possible from zero repeats
            p_del = 0.0
        elif del_w + ins_w > 0.0:
            p_del = del_w / (del_w + ins_w)
        else:
            p_del = 0.5

        step = abs(j - i)
        log10_step = _log10(1.0 - tau) + ((step - 1) * _log10(tau) if step > 1 else 0.0)

        if j > i:
            return _log10(1.0 - pi) + _log10(1.0 - p_del) + log10_step

        # Contractions: only i steps down are possible, re-normalize over those.
        return _log10(1.0 - pi) + _log10(p_del) + log10_step - _log10(1.0 - tau ** i)

    def __repr__(self) -> str:
        return f"SimpleSTRModelCalculator(pi={self.pi}, tau={self.tau}, del={self.del_}, ins={self.ins})"
