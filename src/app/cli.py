#!/usr/bin/env python3
"""
Dump the contents of a search index to an Excel spreadsheet.

Exports the URLs and metadata held in an index to a single-sheet .xlsx file:
row 1 holds the report field names, every following row one indexed document.

Usage:
  dumpindex dumpindextoexcel my-crawl report
  dumpindex --server es.local --port 9200 --verbose dumpindextoexcel my-crawl report.xlsx \
      --reportfields host,url,title --hostfilter www.cancer.gov

Exit codes: 0 success, 5 bad output file name, 10 fetch failed, 20 write failed.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from app.di import get_bulk_fetcher, get_export_service
from app.settings import Settings
from core.dtos import QuerySpec
from core.enums import ExitCode
from core.errors import ExportError
from core.utils.common_functions import clean_output_path, csv_to_list

logger = logging.getLogger(__name__)


def _field_list(val: str) -> list[str]:
    fields = csv_to_list(val)
    if not fields:
        raise argparse.ArgumentTypeError("expected a comma separated list of field names")
    dupes = sorted({f for f in fields if fields.count(f) > 1})
    if dupes:
        raise argparse.ArgumentTypeError(f"duplicate field(s): {', '.join(dupes)}")
    return fields


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="dumpindex", description="Search index export tools.")
    ap.add_argument("--server", default=None, help="Elasticsearch server name (default: APP_SERVER or localhost)")
    ap.add_argument("--port", type=int, default=None, help="Elasticsearch port (default: APP_PORT or 9200)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print parameters and debug logging")

    sub = ap.add_subparsers(dest="command", required=True)
    dump = sub.add_parser(
        "dumpindextoexcel",
        help="Export the URLs and metadata in an index to an Excel spreadsheet.",
        description=(
            "Exports the URLs and some metadata contained in an index to an Excel spreadsheet. "
            "indexname should be the name of the index, and outputfile is the XLSX file to create."
        ),
    )
    dump.add_argument("indexname", help="The index to export")
    dump.add_argument("outputfile", help="The .xlsx file to write (extension added if missing)")
    dump.add_argument(
        "-r",
        "--reportfields",
        type=_field_list,
        default=None,
        help="A comma separated list of fields to extract for the report "
        "(default: host,url,type,contentLength,title).",
    )
    dump.add_argument(
        "-f",
        "--hostfilter",
        default=None,
        help="A hostname to filter the items for. (e.g. www.cancer.gov)",
    )
    return ap


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {"server": args.server, "port": args.port}
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.verbose:
        overrides["verbose"] = True
    return Settings(**overrides)


def dump_index_to_excel(args: argparse.Namespace, settings: Settings, *, backend=None) -> int:
    # Output path is checked before any network traffic
    try:
        cleanpath = clean_output_path(args.outputfile).resolve()
    except ExportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return int(exc.exit_code)

    query = QuerySpec(
        index_name=args.indexname,
        report_fields=tuple(args.reportfields or settings.report_fields),
        host_filter=args.hostfilter,
    )

    if settings.verbose:
        print(f"Index Name: {query.index_name}")
        print(f"Report Fields: {','.join(query.report_fields)}")
        print(f"Server: {settings.server}")
        print(f"Port: {settings.port}")
        print(f"Host filter: {query.host_filter}")

    try:
        result = get_bulk_fetcher(settings, backend=backend).fetch(query)
        get_export_service(settings).export(
            query.report_fields, result.records, cleanpath, index_name=query.index_name
        )
    except ExportError as exc:
        logger.debug("Export of %s failed", query.index_name, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return int(exc.exit_code)

    print(f"Results written to {cleanpath}")
    return int(ExitCode.OK)


def main(argv: list[str] | None = None, *, backend=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as exc:
        ap.error(f"invalid configuration: {exc}")

    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "dumpindextoexcel":
        try:
            return dump_index_to_excel(args, settings, backend=backend)
        except ValidationError as exc:
            ap.error(str(exc))
    ap.error(f"unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
