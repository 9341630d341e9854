#!/usr/bin/env python3
"""SysCode Group Membership Sync CLI.

Reads a device inventory CSV and reconciles custom group membership in the
asset-management API: one group per SysCode, holding the ids of the assets
whose name and FQDN match the CSV rows tagged with that SysCode.

Architecture:
    - AssetApiClient is the shared HTTP layer for all API calls
    - ApiGroupGateway and ApiAssetGateway compose AssetApiClient
    - ReconcileMembershipsUseCase drives the run one SysCode at a time

Environment Variables Required:
    - SYNC_API_BASE_URL: API base URL (or --base-url)
    - SYNC_API_TOKEN: API token

Example Usage:
    $ syscode-sync devices.csv                     # Reconcile memberships
    $ syscode-sync devices.csv --dry-run           # Show what would change
    $ syscode-sync devices.csv --merge-existing    # Keep current members
    $ syscode-sync devices.csv --report run.json   # Save the run report

Exit Codes:
    0: Run completed (individual SysCodes may still have failed)
    1: Missing or invalid CSV, or invalid configuration
    2: Invalid command-line arguments
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .api import ApiTokenAuth, AssetApiClient, ConfigurationError, CsvSourceError
from .config import SyncConfig, setup_logging
from .membership.adapters import ApiAssetGateway, ApiGroupGateway, CsvDeviceReader
from .membership.domain.entities import DeviceRow
from .membership.use_cases import (
    BucketStatus,
    GroupResolver,
    MemberResolver,
    ReconcileMembershipsUseCase,
    RunReport,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syscode-sync",
        description="Reconcile SysCode group membership from a device CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  syscode-sync devices.csv                       # Reconcile memberships
  syscode-sync devices.csv --dry-run             # Lookups only, no writes
  syscode-sync devices.csv --merge-existing      # Union with current members
  syscode-sync devices.csv --report run.json     # Save a JSON run report
        """
    )

    parser.add_argument(
        "csv_path",
        metavar="CSV",
        help="Device CSV with Name, Fully qualified domain name and SysCode columns"
    )

    # Connection
    api_group = parser.add_argument_group("API Options")
    api_group.add_argument(
        "--base-url",
        type=str,
        metavar="URL",
        help="API base URL (overrides SYNC_API_BASE_URL)"
    )

    # Behaviour
    run_group = parser.add_argument_group("Run Options")
    run_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve groups and members without creating groups or writing membership"
    )
    run_group.add_argument(
        "--merge-existing",
        action="store_true",
        help="Keep members already in each group instead of replacing them"
    )

    # Output
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--report",
        type=str,
        metavar="FILE",
        help="Write the run report as JSON to FILE"
    )
    output_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-item detail"
    )
    return parser


async def run_sync(
    rows: list[DeviceRow],
    config: SyncConfig,
    dry_run: bool = False,
    merge_existing: bool = False,
) -> RunReport:
    """Open the API client and reconcile all rows."""
    auth = ApiTokenAuth(token=config.api_token, header=config.token_header)
    logger.info(f"Using API {config.base_url} (token {auth.token_id})")

    async with AssetApiClient(
        auth,
        base_url=config.base_url,
        max_retries=config.max_retries,
        timeout_seconds=config.request_timeout_seconds,
    ) as client:
        groups = ApiGroupGateway(client)
        use_case = ReconcileMembershipsUseCase(
            group_resolver=GroupResolver(
                groups,
                verify_attempts=config.verify_attempts,
                verify_delay=config.verify_delay_seconds,
                description_template=config.group_description,
                dry_run=dry_run,
            ),
            member_resolver=MemberResolver(
                ApiAssetGateway(client),
                lookup_limit=config.asset_lookup_limit,
            ),
            group_gateway=groups,
            merge_existing=merge_existing,
            dry_run=dry_run,
        )
        return await use_case.execute(rows)


def print_summary(report: RunReport) -> None:
    title = "SYNC COMPLETE (DRY RUN)" if report.dry_run else "SYNC COMPLETE"
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)
    print(f"Rows read:       {report.rows_read} ({report.rows_dropped} dropped)")
    print(f"SysCodes:        {len(report.buckets)}")
    print(f"Groups created:  {report.groups_created}")
    print(f"Groups updated:  {report.updates_applied}")
    print(f"Failed:          {report.buckets_failed}")

    if report.buckets:
        print(f"\n{'SysCode':<24} {'Status':<14} {'Group':<14} {'Members':>8} {'Unresolved':>11}")
        print("-" * 75)
        for bucket in report.buckets:
            members = bucket.members_written if bucket.status == BucketStatus.UPDATED else bucket.members_resolved
            print(
                f"{bucket.syscode:<24} {bucket.status.value:<14} {bucket.group_id or '-':<14} "
                f"{members:>8} {len(bucket.unresolved):>11}"
            )
        print("-" * 75)

    print(f"\nCompleted in {report.duration_seconds:.1f} seconds")


def write_report(report: RunReport, path: str) -> None:
    Path(path).write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    logger.info(f"Run report saved to {path}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        rows = CsvDeviceReader(args.csv_path).read()
    except CsvSourceError as e:
        logger.error(f"Cannot read input: {e}")
        return 1

    try:
        config = SyncConfig.from_env(base_url=args.base_url)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Read {len(rows)} row(s) from {args.csv_path}")
    report = asyncio.run(
        run_sync(rows, config, dry_run=args.dry_run, merge_existing=args.merge_existing)
    )
    print_summary(report)

    if args.report:
        try:
            write_report(report, args.report)
        except OSError as e:
            logger.error(f"Failed to write report to {args.report}: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
