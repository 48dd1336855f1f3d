from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from typing import Sequence

from pst.application.container import build_container
from pst.config import get_app_paths, load_settings
from pst.domain.errors import AppError
from pst.logging_config import setup_logging

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pst", description="Phone stock and sales tracker.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Print dashboard totals.")

    export = sub.add_parser("export", help="Write an Excel report.")
    export.add_argument("path")
    export.add_argument("--status", default=None, help="paid, pending or partial")
    export.add_argument("--vendor", default=None)
    export.add_argument("--from", dest="date_from", default=None, help="YYYY-MM-DD")
    export.add_argument("--to", dest="date_to", default=None, help="YYYY-MM-DD")

    intake = sub.add_parser("import-stock", help="Add stock rows from an .xlsx sheet.")
    intake.add_argument("path")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
        setup_logging(get_app_paths().logs_dir, level=settings.log_level)
        app = build_container(settings)

        if args.command == "summary":
            for key, value in asdict(app.reporting.dashboard()).items():
                print(f"{key:<24} {value}")
        elif args.command == "export":
            app.reporting.export_excel(
                args.path,
                payment_status=args.status,
                vendor=args.vendor,
                date_from=args.date_from,
                date_to=args.date_to,
            )
            print(f"Report written to {args.path}")
        elif args.command == "import-stock":
            ok, skipped = app.excel.import_stock_excel(args.path)
            print(f"Imported {ok} row(s), skipped {skipped}.")
    except AppError as e:
        log.error("command_failed command=%s error=%s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
