from __future__ import annotations

import argparse
import pathlib
import sys

from typing import Callable, Optional

from strslip import __version__
from strslip.exceptions import ParamError, InputError
from strslip.logger import get_main_logger, attach_stream_handler, log_levels
from strslip.params import (
    DEFAULT_MINIMUM_REPEAT_TOTAL_LENGTH,
    DEFAULT_MAXIMUM_UNIT_LENGTH,
    DEFAULT_MINIMUM_REPEAT_COUNT,
)
from strslip.reference import DEFAULT_WINDOW_PADDING


def add_model_threshold_args(parser):
    parser.add_argument(
        "--str-min-length",
        type=int,
        default=DEFAULT_MINIMUM_REPEAT_TOTAL_LENGTH,
        help="Minimum repeat total length in bp to consider a site for STR genotyping.")

    parser.add_argument(
        "--str-max-unit",
        type=int,
        default=DEFAULT_MAXIMUM_UNIT_LENGTH,
        help="Maximum repeat unit length in bp to consider a site for STR genotyping.")

    parser.add_argument(
        "--str-min-count",
        type=int,
        default=DEFAULT_MINIMUM_REPEAT_COUNT,
        help="Minimum repeat count to consider a site for STR genotyping.")


def add_validate_parser_args(validate_parser):
    validate_parser.add_argument("str_model", type=pathlib.Path, help="STR model parameter file to validate.")


def add_matrix_parser_args(matrix_parser):
    matrix_parser.add_argument("str_model", type=pathlib.Path, help="STR model parameter file.")

    matrix_parser.add_argument(
        "--unit-length", "-u",
        type=int,
        required=True,
        help="Repeat unit length to print the transition matrix for.")

    matrix_parser.add_argument("--min-count", type=int, default=1, help="Smallest repeat count to include.")
    matrix_parser.add_argument("--max-count", type=int, default=20, help="Largest repeat count to include.")


def add_annotate_parser_args(annotate_parser):
    annotate_parser.add_argument("vcf", type=str, help="VCF file with candidate variant sites.")

    annotate_parser.add_argument(
        "--ref", "-r",
        type=str,
        required=True,
        help="Path to a reference genome, FASTA-formatted and indexed.")

    annotate_parser.add_argument(
        "--output", "-o",
        type=str,
        default="-",
        help="Path to write the annotated VCF to. Defaults to stdout.")

    annotate_parser.add_argument(
        "--str-model",
        type=pathlib.Path,
        help="File containing pre-calculated STR model parameters. If left out, STR sites are detected but no error "
             "model is applied.")

    annotate_parser.add_argument(
        "--str-log",
        type=pathlib.Path,
        help="Path to write a long-form (JSON lines) log of all STR contexts found.")

    annotate_parser.add_argument(
        "--window",
        type=int,
        default=DEFAULT_WINDOW_PADDING,
        help="Number of reference bases on either side of each site to scan for repeats.")

    add_model_threshold_args(annotate_parser)


def _exec_validate(p_args) -> None:
    from strslip.model import STRModel
    from strslip.params import STRModelParams

    logger = get_main_logger(log_levels[p_args.log_level])
    model = STRModel.load(STRModelParams(parameter_file=p_args.str_model), logger=logger)

    for unit_length, calculator in enumerate(model.calculators):
        print(f"{unit_length}\t{'null' if calculator.is_null else 'simple'}")


def _exec_matrix(p_args) -> None:
    from strslip.allele import STRAlleleSet
    from strslip.context import STRContext
    from strslip.model import STRModel
    from strslip.params import STRModelParams
    from strslip.reference import GenomeLocus

    if p_args.unit_length < 1:
        raise ParamError(f"--unit-length must be at least 1; got {p_args.unit_length}")
    if p_args.min_count < 0 or p_args.max_count < p_args.min_count:
        raise ParamError(f"invalid repeat count range: {p_args.min_count}-{p_args.max_count}")

    logger = get_main_logger(log_levels[p_args.log_level])
    model = STRModel.load(STRModelParams(parameter_file=p_args.str_model), logger=logger)

    # Placeholder site: only the unit length and repeat counts matter for the matrix.
    counts = range(p_args.min_count, p_args.max_count + 1)
    alleles = STRAlleleSet("N", "N" * p_args.unit_length, p_args.min_count, counts)
    matrix = model.log10_transformation_matrix(STRContext(GenomeLocus("", 0, 1), None, alleles))

    print("\t".join(("true\\observed", *map(str, counts))))
    for rc, row in zip(counts, matrix):
        print("\t".join((str(rc), *(f"{v:.6g}" for v in row))))


def _exec_annotate(p_args) -> None:
    from strslip.annotate import annotate_vcf
    from strslip.params import STRModelParams

    logger = get_main_logger(log_levels[p_args.log_level])

    try:
        params = STRModelParams.from_args(p_args)
    except ValueError as e:
        raise ParamError(str(e))

    if p_args.window < 0:
        raise ParamError(f"--window must be at least 0; got {p_args.window}")

    if not pathlib.Path(p_args.ref).exists():
        raise ParamError(f"Could not find reference genome at '{p_args.ref}'")
    if p_args.vcf != "-" and not pathlib.Path(p_args.vcf).exists():
        raise ParamError(f"Could not find VCF at '{p_args.vcf}'")

    annotate_vcf(params, p_args.vcf, p_args.ref, p_args.output, window=p_args.window, logger=logger)


def main(args: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="STR amplification (polymerase slippage) error model tools.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    parser.add_argument("--version", "-v", action="version", version=__version__)

    subparsers = parser.add_subparsers()

    def _make_subparser(arg: str, help_text: str, exec_func: Callable, arg_func: Callable):
        sp = subparsers.add_parser(arg, help=help_text)
        sp.add_argument("--log-level", type=str, default="info", choices=("error", "warning", "info", "debug"))
        sp.set_defaults(func=exec_func)
        arg_func(sp)

    _make_subparser(
        "validate-model",
        help_text="Load and validate an STR model parameter file.",
        exec_func=_exec_validate,
        arg_func=add_validate_parser_args)

    _make_subparser(
        "matrix",
        help_text="Print the log10 repeat count transition matrix of an STR model for one unit length.",
        exec_func=_exec_matrix,
        arg_func=add_matrix_parser_args)

    _make_subparser(
        "annotate",
        help_text="Detect STR sites in a VCF and annotate them with their repeat unit.",
        exec_func=_exec_annotate,
        arg_func=add_annotate_parser_args)

    args = args or sys.argv[1:]
    p_args = parser.parse_args(args)

    if not getattr(p_args, "func", None):
        p_args = parser.parse_args(("--help",))

    ll = log_levels[p_args.log_level]
    logger = get_main_logger(ll)
    if not logger.handlers:
        attach_stream_handler(ll, logger)

    try:
        logger.info(f"strslip version {__version__}")
        p_args.func(p_args)
        return 0
    except ParamError as e:
        logger.critical(f"Parameter error: {e}")
        return 1
    except InputError as e:
        logger.critical(f"Input error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
