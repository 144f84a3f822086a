#!/usr/bin/env python
"""Map IDC and TCIA image collections onto ICDC studies.

Usage:
    python scripts/map_external_data.py --output mappings.json
    python scripts/map_external_data.py --study-code GLIOMA01 --log-dir logs

Endpoints are read from the environment (or ``--env-file``):
BENTO_BACKEND_GRAPHQL_URI, IDC_API_BASE_URL, IDC_COLLECTION_BASE_URL,
TCIA_API_BASE_URL and TCIA_COLLECTION_BASE_URL.
"""

# ruff: noqa: E402

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from crdc_links.pipelines.collection_mapping import map_external_data_to_studies
from crdc_links.utils.archive_fetchers import select_fields
from crdc_links.utils.env import load_env_file
from crdc_links.utils.errors import (
    BackendNotConnectedError,
    ConfigurationError,
    StudyCodeNotFoundError,
)
from crdc_links.utils.logging_config import setup_logging
from crdc_links.utils.settings import Settings

logger = logging.getLogger("map_external_data")

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_BACKEND = 2
EXIT_UNEXPECTED = 3


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--env-file", type=Path, default=None, help="dotenv file to load (default: ./.env)")
    parser.add_argument("--study-code", default=None, help="only report this ICDC study designation")
    parser.add_argument(
        "--max-workers",
        type=_positive_int,
        default=1,
        help="concurrent TCIA series requests (default: 1, sequential)",
    )
    parser.add_argument("--output", type=Path, default=None, help="write JSON here instead of stdout")
    parser.add_argument(
        "--fields",
        default=None,
        help="comma-separated top-level keys to keep in each mapping",
    )
    parser.add_argument("--log-dir", type=Path, default=None, help="directory for error.log and combined.log")
    parser.add_argument("--verbose", action="store_true", help="enable DEBUG logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_dir, verbose=args.verbose)
    load_env_file(args.env_file)

    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    logger.info("starting data fetching... (version %s, %s)", settings.version, settings.date)
    try:
        result = map_external_data_to_studies(
            settings,
            study_code=args.study_code,
            max_workers=args.max_workers,
        )
    except StudyCodeNotFoundError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    except BackendNotConnectedError as exc:
        logger.error("%s", exc)
        return EXIT_BACKEND

    if isinstance(result, Exception):
        return EXIT_UNEXPECTED

    payload = [mapping.to_dict() for mapping in result]
    if args.fields:
        fields = [name.strip() for name in args.fields.split(",") if name.strip()]
        payload = select_fields(payload, fields)

    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %d study mappings to %s", len(payload), args.output)
    else:
        print(text)

    logger.info("data fetching complete!")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
