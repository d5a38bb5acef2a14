import argparse
import sys
from typing import List, Optional
from qbgen.core.config import settings
from qbgen.core.engine import run_generation
from qbgen.core.errors import GenerationError
from qbgen.core.logging import configure_logging
from qbgen.generators.targets import TARGET_PROFILES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qbgen",
        description="Generate a typed query builder from a live database schema",
    )
    parser.add_argument(
        "--output-dir",
        default=settings.output_dir,
        help="Directory the query builder is written to (default: %(default)s)",
    )
    parser.add_argument(
        "--dsn",
        default=settings.database_url,
        help="Database URL (or set QBGEN_DATABASE_URL)",
    )
    parser.add_argument(
        "--target",
        choices=list(TARGET_PROFILES),
        default=settings.target,
        help="Output dialect (default: %(default)s)",
    )
    parser.add_argument(
        "--wait-until-available",
        type=float,
        default=settings.wait_until_available,
        help="Seconds to keep retrying the connection (default: %(default)s)",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        result = run_generation(
            output_dir=args.output_dir,
            target=args.target,
            dsn=args.dsn,
            wait_until_available=args.wait_until_available,
        )
    except GenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"Generated {args.target} query builder in {result.output_dir} "
        f"({len(result.changed)} changed, {len(result.removed)} removed)"
    )
    return 0


def main_entry() -> None:
    sys.exit(main())
