"""Extract a geometry timeline from a recorded session file."""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from sessiongeo.services.geometry import GeometryExtractor, extract_session_file
from sessiongeo.utils.exceptions import GeometryExtractionError, SessionFormatError


class _UsageParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = _UsageParser(
        prog="sessiongeo-extract",
        description="Replay a recorded session and sample element geometry",
    )
    parser.add_argument("session_file", help="Path to session.json")
    return parser.parse_args(argv)


def _print_progress(percent: int) -> None:
    sys.stdout.write(f"\rProgress: {percent}%")
    sys.stdout.flush()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    extractor = GeometryExtractor(progress=_print_progress)

    try:
        output_path = asyncio.run(extract_session_file(args.session_file, extractor=extractor))
    except SessionFormatError as e:
        print(str(e), file=sys.stderr)
        return 1
    except GeometryExtractionError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    print(f"\nOutput written to: {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
