"""
Credit Engine - Command-line Entry Point

Scores an applicant record read from a JSON file (or stdin) and prints the
score, lending decision and offers as JSON.

    credit-engine applicant.json --options options.json --config lending.json
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import structlog

from credit_engine import __version__
from credit_engine.core.dependencies import get_credit_engine
from credit_engine.core.logging import setup_logging
from credit_engine.core.metrics import get_metrics
from credit_engine.domain.exceptions import DomainException


def _load_json(path: Optional[str]) -> Dict[str, Any]:
    if path is None:
        return {}
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credit-engine",
        description="Five-C creditworthiness scoring and lending decisions",
    )
    parser.add_argument("applicant", help="Applicant JSON file ('-' for stdin)")
    parser.add_argument("--options", help="Scoring options JSON file")
    parser.add_argument("--config", help="Lending configuration JSON file")
    parser.add_argument(
        "--score-only",
        action="store_true",
        help="Print the score result without a decision",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print Prometheus metrics to stderr after the run",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--log-format", choices=["json", "console"], help="Log renderer")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def run(args: argparse.Namespace) -> Dict[str, Any]:
    engine = get_credit_engine()
    applicant = _load_json(args.applicant)
    options = _load_json(args.options)
    config = _load_json(args.config) or None

    if args.score_only:
        result = await engine.score(applicant, options)
        return result.to_dict()

    evaluation = await engine.evaluate(applicant, options, config)
    return evaluation.to_dict()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_format=args.log_format)
    logger = structlog.get_logger(__name__)

    try:
        output = asyncio.run(run(args))
    except DomainException as e:
        logger.error("evaluation_failed", code=e.code, error=e.message)
        print(json.dumps({"error": e.code, "message": e.message}), file=sys.stderr)
        return 2

    print(json.dumps(output, indent=2, default=str))
    if args.metrics:
        sys.stderr.write(get_metrics().decode())
    return 0


if __name__ == "__main__":
    sys.exit(main())
