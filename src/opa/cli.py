"""
Command-line entry point.

Reads a wide-format CSV (one row per individual, one column per
condition), fits a hypothesis and prints the summary.

Usage::

    python -m opa data.csv --hypothesis 1 2 3
    python -m opa data.csv --hypothesis 1 2 3 --group-col sex --nreps 5000 --seed 42
    python -m opa data.csv --hypothesis 1 2 3 4 --cval-method exact --compare-conditions
"""

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from ._compare import compare_conditions
from ._errors import OpaError
from ._fit import opa
from ._ordering import PAIRING_TYPES
from ._spec import CVAL_METHODS
from .report import summary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opa",
        description="Ordinal pattern analysis of wide-format repeated-measures data.",
    )
    parser.add_argument("csv", help="CSV file, one row per individual")
    parser.add_argument("--hypothesis", nargs="+", type=float, required=True,
                        help="hypothesised relative values, one per condition column")
    parser.add_argument("--columns", nargs="+", default=None,
                        help="condition columns to use (default: all except --group-col)")
    parser.add_argument("--group-col", default=None, help="column holding group labels")
    parser.add_argument("--pairing-type", choices=PAIRING_TYPES, default="pairwise")
    parser.add_argument("--diff-threshold", type=float, default=0.0)
    parser.add_argument("--cval-method", choices=CVAL_METHODS, default="stochastic")
    parser.add_argument("--nreps", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--n-jobs", type=int, default=1)
    parser.add_argument("--digits", type=int, default=2)
    parser.add_argument("--compare-conditions", action="store_true",
                        help="also report PCCs and c-values for every pair of conditions")
    parser.add_argument("--progress", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    df = pd.read_csv(args.csv)
    logger.info(f"Loaded {args.csv}: {df.shape[0]} rows x {df.shape[1]} columns")

    group = None
    if args.group_col is not None:
        if args.group_col not in df.columns:
            parser.error(f"group column {args.group_col!r} not found in {args.csv}")
        group = df[args.group_col]
        df = df.drop(columns=[args.group_col])
    if args.columns is not None:
        missing = [c for c in args.columns if c not in df.columns]
        if missing:
            parser.error(f"columns not found in {args.csv}: {missing}")
        df = df[args.columns]

    try:
        model = opa(
            df,
            args.hypothesis,
            group,
            pairing_type=args.pairing_type,
            diff_threshold=args.diff_threshold,
            cval_method=args.cval_method,
            nreps=args.nreps,
            seed=args.seed,
            n_jobs=args.n_jobs,
            progress=args.progress,
        )
        print(summary(model, digits=args.digits))
        if args.compare_conditions:
            print()
            print(summary(compare_conditions(model, seed=args.seed, n_jobs=args.n_jobs)))
    except OpaError as e:
        print(f"opa: error: {e}", file=sys.stderr)
        return 2
    return 0
