# community_portal/models/proposal.py
from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from community_portal.db.enums import ProposalStatus
from community_portal.models.base import PortalModel


class ProposalOption(PortalModel):
    id: str
    label: str
    count: int = 0


class Proposal(PortalModel):
    """
    Community decision item.

    total_votes == sum(option.count) == len(voted_user_ids) at all times;
    options are fixed at creation, only their labels can be edited.
    """

    id: str
    title: str
    description: str
    created_at: datetime
    deadline: datetime
    options: Tuple[ProposalOption, ...]
    status: ProposalStatus = ProposalStatus.ACTIVE
    total_votes: int = 0
    voted_user_ids: Tuple[str, ...] = ()
    is_visible: bool = True
    order: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == ProposalStatus.ACTIVE

    def has_voted(self, user_id: str) -> bool:
        return user_id in self.voted_user_ids

    def find_option(self, option_id: str) -> Optional[ProposalOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class ProposalUpdate(BaseModel):
    '''
    议题的部分更新，None 表示不修改
    option_labels: {option_id: new_label}，只允许改文字，不允许增删选项
    '''
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    title: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    option_labels: Optional[Dict[str, str]] = None
