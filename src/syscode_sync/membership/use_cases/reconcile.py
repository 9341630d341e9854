"""Reconcile Memberships use case.

Drives the whole run, one syscode bucket at a time:

    rows ─> normalize ─> group_by_syscode ─> for each bucket:
        ├── GroupResolver.resolve_group     (skip bucket on failure)
        ├── MemberResolver.resolve_members  (skip update if empty)
        └── replace_members                 (one PUT, no retry)

Buckets share no state and are processed strictly in order. A failure in
one bucket is logged and recorded in the report; the next bucket runs
regardless. Nothing here raises for API failures, so a run with partial
failures still completes normally.

Membership semantics:
- Default: authoritative replace. The group ends up holding exactly the
  identifiers resolved from the CSV in this run.
- merge_existing: the group's current members are fetched first and kept,
  new identifiers are appended.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from ..domain.entities import (
    DeviceRow,
    MemberResolution,
    MembershipUpdate,
    SyscodeBucket,
)
from ..domain.ports import IGroupGateway
from .normalize import group_by_syscode, is_valid_row, normalize
from .resolve_group import GroupResolver
from .resolve_members import MemberResolver

logger = logging.getLogger(__name__)


class BucketStatus(str, Enum):
    """Final state of one syscode bucket."""

    UPDATED = "updated"  # Membership written
    NO_MEMBERS = "no_members"  # Nothing resolved, no write attempted
    GROUP_FAILED = "group_failed"  # Lookup, create or verify failed
    UPDATE_FAILED = "update_failed"  # Membership write (or merge read) failed
    PLANNED = "planned"  # Dry run, nothing written
    ERROR = "error"  # Unexpected exception while processing the bucket


@dataclass
class BucketReport:
    """Outcome of one syscode bucket."""

    syscode: str
    status: BucketStatus
    items: int = 0
    group_id: Optional[str] = None
    group_created: bool = False
    members_resolved: int = 0
    members_written: int = 0
    unresolved: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status in (BucketStatus.GROUP_FAILED, BucketStatus.UPDATE_FAILED, BucketStatus.ERROR)

    def to_dict(self) -> dict:
        return {
            "syscode": self.syscode,
            "status": self.status.value,
            "items": self.items,
            "group_id": self.group_id,
            "group_created": self.group_created,
            "members_resolved": self.members_resolved,
            "members_written": self.members_written,
            "unresolved": self.unresolved,
            "error": self.error,
        }


@dataclass
class RunReport:
    """Result of a reconciliation run."""

    dry_run: bool = False
    merge_existing: bool = False
    rows_read: int = 0
    rows_dropped: int = 0
    work_items: int = 0
    buckets: list[BucketReport] = field(default_factory=list)

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def groups_created(self) -> int:
        return sum(1 for b in self.buckets if b.group_created)

    @property
    def buckets_failed(self) -> int:
        return sum(1 for b in self.buckets if b.failed)

    @property
    def updates_applied(self) -> int:
        return sum(1 for b in self.buckets if b.status == BucketStatus.UPDATED)

    @property
    def members_written(self) -> int:
        return sum(b.members_written for b in self.buckets)

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "merge_existing": self.merge_existing,
            "rows_read": self.rows_read,
            "rows_dropped": self.rows_dropped,
            "work_items": self.work_items,
            "buckets_total": len(self.buckets),
            "buckets_failed": self.buckets_failed,
            "groups_created": self.groups_created,
            "updates_applied": self.updates_applied,
            "members_written": self.members_written,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "buckets": [b.to_dict() for b in self.buckets],
        }


class ReconcileMembershipsUseCase:
    """Reconcile group memberships against device rows."""

    def __init__(
        self,
        group_resolver: GroupResolver,
        member_resolver: MemberResolver,
        group_gateway: IGroupGateway,
        merge_existing: bool = False,
        dry_run: bool = False,
    ):
        """Initialize the use case.

        Args:
            group_resolver: Resolves (or creates) the group per syscode
            member_resolver: Resolves asset identifiers per bucket
            group_gateway: Gateway used for membership writes and merge reads
            merge_existing: Keep the group's current members
            dry_run: Resolve everything but write nothing
        """
        self.group_resolver = group_resolver
        self.member_resolver = member_resolver
        self.groups = group_gateway
        self.merge_existing = merge_existing
        self.dry_run = dry_run

    async def execute(self, rows: Iterable[DeviceRow]) -> RunReport:
        """Run the reconciliation over all rows."""
        rows = list(rows)
        report = RunReport(
            dry_run=self.dry_run,
            merge_existing=self.merge_existing,
            rows_read=len(rows),
            started_at=datetime.now(timezone.utc),
        )

        items = normalize(rows)
        report.rows_dropped = sum(1 for row in rows if not is_valid_row(row))
        report.work_items = len(items)

        if not items:
            logger.warning(
                f"No work to do: {report.rows_read} row(s) read, "
                f"{report.rows_dropped} dropped by validation"
            )
            report.completed_at = datetime.now(timezone.utc)
            return report

        buckets = group_by_syscode(items)
        logger.info(
            f"Reconciling {len(buckets)} syscode group(s) from {report.work_items} "
            f"work item(s) ({report.rows_dropped} row(s) dropped)"
            + (" [DRY RUN]" if self.dry_run else "")
        )

        for index, bucket in enumerate(buckets, start=1):
            logger.info(f"[{bucket.syscode}] Bucket {index}/{len(buckets)}: {len(bucket)} item(s)")
            try:
                bucket_report = await self.process_bucket(bucket)
            except Exception as e:
                logger.exception(f"[{bucket.syscode}] Unexpected error, skipping bucket: {e}")
                bucket_report = BucketReport(
                    syscode=bucket.syscode,
                    status=BucketStatus.ERROR,
                    items=len(bucket),
                    error=str(e),
                )
            report.buckets.append(bucket_report)

        report.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"Run complete: {len(report.buckets)} bucket(s), "
            f"{report.updates_applied} updated, {report.buckets_failed} failed, "
            f"{report.groups_created} group(s) created, "
            f"{report.members_written} member id(s) written "
            f"in {report.duration_seconds:.1f}s"
        )
        return report

    async def process_bucket(self, bucket: SyscodeBucket) -> BucketReport:
        """Group, then members, then at most one membership write."""
        syscode = bucket.syscode
        report = BucketReport(syscode=syscode, status=BucketStatus.NO_MEMBERS, items=len(bucket))

        group_result = await self.group_resolver.resolve_group(syscode)
        if not group_result.success:
            report.status = BucketStatus.GROUP_FAILED
            report.group_id = group_result.group_id
            report.error = (
                f"{group_result.error.value}: {group_result.message}"
                if group_result.error
                else group_result.message
            )
            logger.warning(f"[{syscode}] Skipping member resolution: {report.error}")
            return report

        group = group_result.group
        report.group_id = group.id if group else None
        report.group_created = bool(group and group.created_now)

        resolution = await self.member_resolver.resolve_members(bucket)
        report.members_resolved = len(resolution.member_ids)
        report.unresolved = [item.name for item in resolution.unresolved]

        if not resolution.member_ids:
            report.status = BucketStatus.NO_MEMBERS
            return report

        if self.dry_run or group is None:
            report.status = BucketStatus.PLANNED
            logger.info(
                f"[{syscode}] Would set {len(resolution.member_ids)} member(s) "
                f"on group {report.group_id or '(new)'} (dry run)"
            )
            return report

        member_ids = await self._merge_members(group.id, group.created_now, resolution, report)
        if member_ids is None:
            return report

        update = MembershipUpdate(group_id=group.id, member_ids=tuple(member_ids))
        result = await self.groups.replace_members(update)
        if not result.success:
            report.status = BucketStatus.UPDATE_FAILED
            report.error = result.describe()
            logger.error(
                f"[{syscode}] Membership update failed: PUT {result.endpoint} "
                f"membersId={list(update.member_ids)} -> {result.describe()}"
            )
            return report

        report.status = BucketStatus.UPDATED
        report.members_written = len(update.member_ids)
        logger.info(f"[{syscode}] Group id={group.id} now has {report.members_written} member(s)")
        return report

    async def _merge_members(
        self,
        group_id: str,
        created_now: bool,
        resolution: MemberResolution,
        report: BucketReport,
    ) -> Optional[list[str]]:
        """Member list to write, or None if the merge read failed."""
        if not self.merge_existing or created_now:
            return list(resolution.member_ids)

        current = await self.groups.fetch_group(group_id)
        if not current.success or current.value is None:
            report.status = BucketStatus.UPDATE_FAILED
            report.error = f"could not read current members: {current.describe()}"
            logger.error(f"[{resolution.syscode}] Not updating group id={group_id}: {report.error}")
            return None

        merged = list(current.value.member_ids)
        for member_id in resolution.member_ids:
            if member_id not in merged:
                merged.append(member_id)
        logger.info(
            f"[{resolution.syscode}] Merging {len(resolution.member_ids)} resolved member(s) "
            f"into {len(current.value.member_ids)} existing"
        )
        return merged
