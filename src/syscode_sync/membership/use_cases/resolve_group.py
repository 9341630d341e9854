"""Resolve Group use case.

Ensures a custom group exists for a syscode:

1. Look up the group by exact name.
2. If it exists, use it.
3. Otherwise create it with empty membership and a templated description.
4. Read the new group back by id until it is visible, up to
   verify_attempts single-shot reads with verify_delay seconds between
   them, so the attempt bound is also the request bound.

Group creation and read availability are not linearizable in the API, so a
freshly created group can 404 for a few seconds. Step 4 waits that out and
only gives up once every attempt has failed.
"""

import logging
from typing import Optional

from ...api.resilience import describe_attempt, retry_until
from ..domain.entities import GatewayResult, Group, GroupError, GroupResult
from ..domain.ports import IGroupGateway

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION_TEMPLATE = "Auto-created group for SysCode {syscode}"


class GroupResolver:
    """Look up or create the group for a syscode."""

    def __init__(
        self,
        group_gateway: IGroupGateway,
        verify_attempts: int = 3,
        verify_delay: float = 3.0,
        description_template: str = DEFAULT_DESCRIPTION_TEMPLATE,
        dry_run: bool = False,
    ):
        """Initialize the resolver.

        Args:
            group_gateway: Gateway for group operations
            verify_attempts: Read-back attempts after a create
            verify_delay: Seconds between read-back attempts
            description_template: str.format template with {syscode}
            dry_run: Report missing groups instead of creating them
        """
        self.groups = group_gateway
        self.verify_attempts = max(1, verify_attempts)
        self.verify_delay = verify_delay
        self.description_template = description_template
        self.dry_run = dry_run

    def describe(self, syscode: str) -> str:
        """Description for a group created for syscode."""
        return self.description_template.format(syscode=syscode)

    async def resolve_group(self, syscode: str) -> GroupResult:
        """Return the group for syscode, creating and verifying it if needed.

        In dry-run mode a missing group yields a successful result with no
        group attached.
        """
        lookup = await self.groups.find_group_by_name(syscode)
        if not lookup.success:
            logger.error(f"[{syscode}] Group lookup failed: {lookup.describe()}")
            return GroupResult(
                success=False,
                syscode=syscode,
                error=GroupError.LOOKUP_FAILED,
                message=lookup.error,
            )

        if lookup.value is not None:
            logger.info(f"[{syscode}] Using existing group id={lookup.value.id}")
            return GroupResult(success=True, syscode=syscode, group=lookup.value)

        if self.dry_run:
            logger.info(f"[{syscode}] Group does not exist; would create it (dry run)")
            return GroupResult(success=True, syscode=syscode, message="dry run: group not created")

        created = await self.groups.create_group(syscode, self.describe(syscode))
        if not created.success or created.value is None:
            logger.error(f"[{syscode}] Group create failed: {created.describe()}")
            return GroupResult(
                success=False,
                syscode=syscode,
                error=GroupError.CREATE_FAILED,
                message=created.error or "create response had no group id",
            )

        group = created.value
        logger.info(f"[{syscode}] Created group id={group.id}; verifying availability")
        return await self._verify(syscode, group)

    async def _verify(self, syscode: str, group: Group) -> GroupResult:
        """Read the new group back until it is visible under the same id."""

        def on_failure(
            attempt: int,
            result: Optional[GatewayResult[Group]],
            error: Optional[Exception],
        ) -> None:
            if error is not None:
                reason = str(error)
            elif result is not None and not result.success:
                reason = result.describe()
            else:
                got = result.value.id if result and result.value else None
                reason = f"id mismatch (expected {group.id}, got {got})"
            logger.warning(
                f"[{syscode}] Verification of group id={group.id} failed, "
                f"{describe_attempt(attempt, self.verify_attempts, reason)}"
            )

        outcome = await retry_until(
            lambda: self.groups.fetch_group(group.id, retry=False),
            attempts=self.verify_attempts,
            delay=self.verify_delay,
            predicate=lambda result: (
                result.success and result.value is not None and result.value.id == group.id
            ),
            on_failure=on_failure,
        )

        if not outcome.success:
            logger.error(
                f"[{syscode}] Group id={group.id} not readable after "
                f"{outcome.attempts} attempts; skipping this syscode"
            )
            return GroupResult(
                success=False,
                syscode=syscode,
                group=group,
                error=GroupError.VERIFICATION_FAILED,
                message=f"group not readable after {outcome.attempts} attempts",
                verify_attempts=outcome.attempts,
            )

        logger.info(f"[{syscode}] Group id={group.id} verified (attempt {outcome.attempts})")
        return GroupResult(
            success=True,
            syscode=syscode,
            group=group,
            verify_attempts=outcome.attempts,
        )
