"""Main entry point with CLI."""
import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

from aet_downloader.config import FETCH_MODES, Settings, parse_start_time
from aet_downloader.errors import ConfigError
from aet_downloader.jobs.months import normalize_months, parse_months
from aet_downloader.jobs.runner import run_from_settings
from aet_downloader.logging_conf import setup_logging
from aet_downloader.parse.redact import redact_settings

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="SIAET monthly AET downloader")

    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help="Year to download (default: ANO_CONSULTA)",
    )
    parser.add_argument(
        "--months",
        type=str,
        default=None,
        help="Comma separated months, e.g. 1,2,3 (default: MESES_CONSULTA or 1..12)",
    )
    parser.add_argument(
        "--mode",
        choices=FETCH_MODES,
        default=None,
        help="Fetch through plain HTTP or a headless browser (default: FETCH_MODE or http)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Where monthly JSON files are written (default: OUTPUT_DIR or ./aetsbaixadas)",
    )
    parser.add_argument(
        "--start-at",
        type=str,
        default=None,
        help="Wait until this HH:MM before starting (default: HORARIO_INICIO)",
    )
    parser.add_argument(
        "--navigation-timeout",
        type=float,
        default=None,
        help="Browser navigation timeout in seconds (default: NAVIGATION_TIMEOUT or 60)",
    )
    parser.add_argument(
        "--skip-empty",
        action="store_true",
        help="Do not write a file for months with zero AET records",
    )
    parser.add_argument(
        "--stop-on-token-expiry",
        action="store_true",
        help="End the run when a token expires mid-month instead of skipping the month",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to a .env file (default: .env in the working directory)",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Verbose (DEBUG) logs",
    )

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment first, CLI flags on top."""
    settings = Settings.from_env(args.env_file)

    start_time = None
    if args.start_at:
        try:
            start_time = parse_start_time(args.start_at)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    months = normalize_months(parse_months(args.months)) if args.months else None

    return settings.with_overrides(
        year=args.year,
        months=months,
        fetch_mode=args.mode,
        output_dir=args.output_dir,
        start_time=start_time,
        navigation_timeout=args.navigation_timeout,
        persist_empty=False if args.skip_empty else None,
        log_level="DEBUG" if args.dev else None,
    )


def log_banner(settings: Settings) -> None:
    logger.info("=" * 60)
    logger.info("SIAET AET Downloader Starting")
    for key, value in redact_settings(dataclasses.asdict(settings)).items():
        if key == "errors":
            continue
        logger.info(f"{key}: {value}")
    logger.info("=" * 60)


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        settings = build_settings(args)
        setup_logging(settings.log_level)
        settings.validate()
    except ConfigError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    log_banner(settings)

    try:
        asyncio.run(run_from_settings(settings, propagate_token_expiry=args.stop_on_token_expiry))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Script error: {e}", exc_info=True)


if __name__ == "__main__":
    main()
