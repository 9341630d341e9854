"""Use cases for SysCode group membership.

Each use case orchestrates domain logic without knowing about
infrastructure details.
"""

from .normalize import group_by_syscode, is_valid_row, normalize, split_syscodes
from .reconcile import BucketReport, BucketStatus, ReconcileMembershipsUseCase, RunReport
from .resolve_group import DEFAULT_DESCRIPTION_TEMPLATE, GroupResolver
from .resolve_members import MemberResolver, select_asset

__all__ = [
    "normalize",
    "split_syscodes",
    "is_valid_row",
    "group_by_syscode",
    "GroupResolver",
    "DEFAULT_DESCRIPTION_TEMPLATE",
    "MemberResolver",
    "select_asset",
    "ReconcileMembershipsUseCase",
    "RunReport",
    "BucketReport",
    "BucketStatus",
]
