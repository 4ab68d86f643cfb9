from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from community_portal.models.proposal import Proposal, ProposalOption
from community_portal.models.user import User


class DTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserDTO(DTO):
    """User as shown to API clients; the stored credential never leaves the core."""

    id: str
    name: str
    role: str
    status: str
    building: str
    unit: str
    phone_number: str
    managed_building: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_model(cls, user: User) -> "UserDTO":
        return cls(
            id=user.id,
            name=user.name,
            role=user.role.value,
            status=user.status.value,
            building=user.building,
            unit=user.unit,
            phone_number=user.phone_number,
            managed_building=user.managed_building,
            avatar=user.avatar,
        )


class ProposalDTO(DTO):
    """Proposal without the voter list (who voted is revealed per viewer)."""

    id: str
    title: str
    description: str
    created_at: datetime
    deadline: datetime
    status: str
    options: List[ProposalOption]
    total_votes: int
    is_visible: bool
    order: int

    @classmethod
    def from_model(cls, proposal: Proposal) -> "ProposalDTO":
        return cls(
            id=proposal.id,
            title=proposal.title,
            description=proposal.description,
            created_at=proposal.created_at,
            deadline=proposal.deadline,
            status=proposal.status.value,
            options=list(proposal.options),
            total_votes=proposal.total_votes,
            is_visible=proposal.is_visible,
            order=proposal.order,
        )
