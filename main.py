"""
main.py — command-line entry point.

  python main.py classify "https://example.com"
  python main.py classify 4006381333931 --format EAN13
  python main.py lookup 3017620422003

`lookup` runs the configured provider chain (see LOOKUP_ORDER in .env) and
prints the product plus every provider that was tried.
"""
import argparse
import asyncio
import logging
import sys

import config
from classifier import CodeFormat, classify
from product_lookup import AttemptStatus, LookupOutcome, resolve

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    handlers=[logging.StreamHandler(sys.stderr)],
)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def format_outcome(outcome: LookupOutcome) -> str:
    lines = [outcome.summary()]
    if outcome.record is not None:
        r = outcome.record
        for label, value in (("Name", r.name), ("Brand", r.brand),
                             ("Category", r.category), ("Image", r.image)):
            lines.append(f"  {label:<9}{value or '-'}")
    lines.append("Providers tried:")
    for a in outcome.attempts:
        status = a.outcome.value
        if a.outcome is AttemptStatus.FAILED and a.error is not None:
            status = f"{status} ({a.error.value})"
        lines.append(f"  {a.provider:<18}{status:<28}{a.elapsed_ms}ms")
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify scanned codes and look up products.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="print the content kind of a payload")
    p_classify.add_argument("payload")
    p_classify.add_argument(
        "--format", default=CodeFormat.QR.value,
        choices=[f.value for f in CodeFormat],
    )

    p_lookup = sub.add_parser("lookup", help="resolve a barcode against the provider chain")
    p_lookup.add_argument("code")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "classify":
        print(classify(args.payload, CodeFormat(args.format)).value)
        return 0

    try:
        outcome = asyncio.run(resolve(args.code))
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 2
    print(format_outcome(outcome))
    return 0 if outcome.found else 1


if __name__ == "__main__":
    sys.exit(main())
