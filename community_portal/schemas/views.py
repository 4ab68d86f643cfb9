from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from community_portal.models.proposal import Proposal
from community_portal.models.user import User


class ViewModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class VoterInfo(ViewModel):
    id: str
    name: str
    building: str
    unit: str

    @classmethod
    def from_user(cls, user: User) -> "VoterInfo":
        return cls(id=user.id, name=user.name, building=user.building, unit=user.unit)


class OwnerFeedItem(ViewModel):
    proposal: Proposal
    has_voted: bool
    voters: List[VoterInfo] = []   # 仅在本人已投票后才返回


class PublicStats(ViewModel):
    verified_owner_count: int
    total_votes_cast: int
    participation_rate: int        # 整数百分比


class BuildingRoster(ViewModel):
    building: str
    pending: List[User]
    verified: List[User]
