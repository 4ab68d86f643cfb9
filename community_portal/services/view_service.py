"""
Derived views over a PortalSnapshot.

Every function here is pure: it reads one snapshot and returns new
objects. Nothing is cached, so a view always reflects the collections
it was computed from.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Set

from community_portal.db.enums import UserRole, UserStatus
from community_portal.errors import NotFoundError, PermissionDeniedError
from community_portal.models.proposal import Proposal
from community_portal.models.user import User
from community_portal.schemas.views import (
    BuildingRoster,
    OwnerFeedItem,
    PublicStats,
    VoterInfo,
)
from community_portal.store import PortalSnapshot, PortalStore


def sorted_by_order(proposals: Iterable[Proposal]) -> List[Proposal]:
    # sorted() 是稳定排序，order 相同时保持插入顺序
    return sorted(proposals, key=lambda p: p.order)


def public_feed(snapshot: PortalSnapshot) -> List[Proposal]:
    return sorted_by_order(
        p for p in snapshot.proposals if p.is_visible and p.is_active
    )


def owner_feed(snapshot: PortalSnapshot, viewer_id: str) -> List[OwnerFeedItem]:
    users_by_id = {u.id: u for u in snapshot.users}
    items = []
    for proposal in sorted_by_order(p for p in snapshot.proposals if p.is_visible):
        has_voted = proposal.has_voted(viewer_id)
        voters = []
        if has_voted:
            # 已删除的用户不再展示
            voters = [
                VoterInfo.from_user(users_by_id[uid])
                for uid in proposal.voted_user_ids
                if uid in users_by_id
            ]
        items.append(OwnerFeedItem(proposal=proposal, has_voted=has_voted, voters=voters))
    return items


def participation_rate(total_votes: int, verified_owners: int, proposal_count: int) -> int:
    denominator = verified_owners * proposal_count
    if denominator == 0:
        return 0
    rate = Decimal(total_votes) * 100 / Decimal(denominator)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def public_stats(snapshot: PortalSnapshot) -> PublicStats:
    # 只统计已认证的业主，不含管理员
    verified_owners = sum(1 for u in snapshot.users if u.is_verified_owner)
    total_votes = sum(p.total_votes for p in snapshot.proposals)
    return PublicStats(
        verified_owner_count=verified_owners,
        total_votes_cast=total_votes,
        participation_rate=participation_rate(
            total_votes, verified_owners, len(snapshot.proposals)
        ),
    )


def managed_buildings(snapshot: PortalSnapshot) -> Set[str]:
    return {
        u.managed_building
        for u in snapshot.users
        if u.role == UserRole.BUILDING_ADMIN and u.managed_building
    }


def orphaned_pending_users(snapshot: PortalSnapshot) -> List[User]:
    covered = managed_buildings(snapshot)
    return [
        u for u in snapshot.users
        if u.role == UserRole.OWNER
        and u.status == UserStatus.PENDING
        and u.building not in covered
    ]


def building_roster(snapshot: PortalSnapshot, building: str) -> BuildingRoster:
    owners = [u for u in snapshot.users if u.role == UserRole.OWNER and u.building == building]
    return BuildingRoster(
        building=building,
        pending=[u for u in owners if u.status == UserStatus.PENDING],
        verified=[u for u in owners if u.status == UserStatus.VERIFIED],
    )


class ViewService:
    """Role-specific read models, each computed from a fresh snapshot."""

    def __init__(self, store: PortalStore):
        self.store = store

    def public_feed(self) -> List[Proposal]:
        return public_feed(self.store.snapshot())

    def public_stats(self) -> PublicStats:
        return public_stats(self.store.snapshot())

    def owner_feed(self, *, viewer_id: str) -> List[OwnerFeedItem]:
        snapshot = self.store.snapshot()
        viewer = snapshot.find_user(viewer_id)
        if not viewer:
            raise NotFoundError("User not found", entity_id=viewer_id)
        if not viewer.is_verified_owner:
            raise PermissionDeniedError("Only verified owners can view the voting feed")
        return owner_feed(snapshot, viewer_id)
