from __future__ import annotations

import logging

from dataclasses import dataclass
from pathlib import Path
from typing import IO

from .allele import STRAllele, STRAlleleSet
from .exceptions import STRLogError
from .json import dumps
from .likelihoods import AlleleLikelihoods
from .logger import get_main_logger
from .reference import GenomeLocus
from .variant import VariantSite

__all__ = [
    "STRContext",
    "STRLogFile",
]


@dataclass(frozen=True)
class STRContext:
    locus: GenomeLocus
    variant: VariantSite | None
    alleles: STRAlleleSet
    likelihoods: AlleleLikelihoods[STRAllele] | None = None
    allele_depths: tuple[int, ...] | None = None

    def __post_init__(self):
        if self.allele_depths is not None and len(self.allele_depths) != len(self.alleles):
            raise ValueError(
                f"got {len(self.allele_depths)} allele depths for {len(self.alleles)} alleles at {self.locus}")
        if self.likelihoods is not None and self.likelihoods.alleles != tuple(self.alleles):
            raise ValueError(f"likelihoods at {self.locus} are not expressed over the context's STR alleles")

    def __str__(self) -> str:
        return f"{self.locus} {self.alleles}"

    def to_dict(self) -> dict:
        res = {
            "contig": self.locus.contig,
            "start": self.locus.start,
            "end": self.locus.end,
            "unit": self.alleles.unit,
            "ref_cn": self.alleles.reference_repeat_count,
            "cns": list(self.alleles.repeat_counts),
            "ad": list(self.allele_depths) if self.allele_depths is not None else None,
            "variant": None,
            "likelihoods": None,
        }

        if self.variant is not None:
            res["variant"] = {
                "start": self.variant.start,
                "alleles": [a.bases for a in self.variant.alleles],
            }

        if self.likelihoods is not None:
            res["likelihoods"] = {
                sample: self.likelihoods.sample_matrix(sample) for sample in self.likelihoods.samples
            }

        return res

    def to_long_string(self) -> str:
        return dumps(self.to_dict()).decode("utf-8")


class STRLogFile:
    """
    Long-form log of every STR context found during a run, one JSON object per line. The file is created (or
    truncated) when entering the context manager and closed when leaving it.
    """

    def __init__(self, path: Path | str, logger: logging.Logger | None = None):
        self._path: Path = Path(path)
        self._logger: logging.Logger = logger or get_main_logger()
        self._fh: IO[str] | None = None
        self._n_written: int = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def n_written(self) -> int:
        return self._n_written

    def __enter__(self) -> STRLogFile:
        try:
            self._fh = open(self._path, "w")
        except OSError as e:
            raise STRLogError(f"Problems opening the STR log file {self._path}") from e
        self._logger.debug(f"Opened STR log file {self._path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            self._logger.debug(f"Closed STR log file {self._path} ({self._n_written} contexts written)")

    def write(self, context: STRContext) -> None:
        if self._fh is None:
            raise STRLogError(f"STR log file {self._path} is not open")
        try:
            self._fh.write(context.to_long_string())
            self._fh.write("\n")
        except OSError as e:
            raise STRLogError(f"Problems writing to the STR log file {self._path}") from e
        self._n_written += 1
