from __future__ import annotations

import contextlib
import logging
import time

from pysam import FastaFile, VariantFile

from .compose import STRContextComposer
from .context import STRLogFile
from .exceptions import InputError
from .logger import get_main_logger
from .model import STRModel
from .params import STRModelParams
from .reference import DEFAULT_WINDOW_PADDING, ReferenceContext
from .variant import VariantSite
from .vcf_utils import VCF_INFO_STR_UNIT, add_str_header_lines

__all__ = [
    "annotate_vcf",
]


def annotate_vcf(
    params: STRModelParams,
    vcf_path: str,
    reference_path: str,
    output_path: str = "-",
    window: int = DEFAULT_WINDOW_PADDING,
    logger: logging.Logger | None = None,
) -> tuple[int, int]:
    """
    Runs every record of a VCF through STR context composition and writes the records back out, with the repeat
    unit of STR sites in the STRUnit INFO field.
    :return: Tuple of (number of records processed, number of STR sites found).
    """

    logger = logger or get_main_logger()
    model = STRModel.load(params, logger=logger)

    start_time = time.perf_counter()
    n_records: int = 0
    n_str: int = 0

    with contextlib.ExitStack() as stack:
        log_file = stack.enter_context(STRLogFile(params.log_file, logger=logger)) if params.log_file else None
        composer = STRContextComposer(model, log_file=log_file, logger=logger)

        fasta = stack.enter_context(FastaFile(reference_path))
        vcf_in = stack.enter_context(VariantFile(vcf_path))

        header = vcf_in.header.copy()
        add_str_header_lines(header, model.vcf_header_lines())
        vcf_out = stack.enter_context(VariantFile(output_path, "w", header=header))

        for record in vcf_in:
            n_records += 1

            if record.contig not in fasta.references:
                raise InputError(f"contig {record.contig} of record at {record.contig}:{record.pos} is missing from "
                                 f"reference {reference_path}")

            reference = ReferenceContext.from_fasta(fasta, record.contig, record.start, padding=window)
            context = composer.compose_context_from_variant(reference, VariantSite.from_pysam(record))

            record.translate(header)
            if context is not None:
                n_str += 1
                record.info[VCF_INFO_STR_UNIT.key] = context.alleles.unit

            vcf_out.write(record)

    logger.info(f"Annotated {n_str} STR sites out of {n_records} records in {(time.perf_counter() - start_time):.2f}s")
    return n_records, n_str
