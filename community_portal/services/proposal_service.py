from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence
from uuid import uuid4

from community_portal.db.enums import ProposalStatus, UserStatus
from community_portal.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from community_portal.logger import get_logger
from community_portal.models.proposal import Proposal, ProposalOption, ProposalUpdate
from community_portal.services import view_service
from community_portal.services.permissions import require_super_admin
from community_portal.store import PortalState, PortalStore

logger = get_logger(__name__)

DEFAULT_VOTING_PERIOD = timedelta(days=7)
MIN_OPTIONS = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _proposal_index(state: PortalState, proposal_id: str) -> int:
    idx = state.proposal_index(proposal_id)
    if idx is None:
        raise NotFoundError("Proposal not found", entity_id=proposal_id)
    return idx


class ProposalService:
    """
    Proposal lifecycle (active -> closed) and voting.

    禁止删除议题
    禁止增删选项（只能改选项文字）
    禁止关闭后重新开启
    """

    def __init__(self, store: PortalStore):
        self.store = store

    def list_all(self, *, operator_id: str) -> List[Proposal]:
        '''超级管理员视图：包含已关闭、已隐藏的议题'''
        snapshot = self.store.snapshot()
        require_super_admin(snapshot, operator_id)
        return view_service.sorted_by_order(snapshot.proposals)

    def create_proposal(
        self,
        *,
        operator_id: str,
        title: str,
        description: str,
        options: Sequence[str],
        deadline: Optional[datetime] = None,
    ) -> Proposal:
        '''
        发布新议题，排在最前面

        :param operator_id: 操作者ID（必须是超级管理员）
        :type operator_id: str
        :param title: 议题标题
        :type title: str
        :param description: 议题描述
        :type description: str
        :param options: 选项文字，至少 2 个
        :type options: Sequence[str]
        :param deadline: 截止时间，缺省为 7 天后
        :type deadline: Optional[datetime]
        :return: 创建的议题
        :rtype: Proposal
        '''
        title = (title or "").strip()
        if not title:
            raise ValidationError("title is required")

        labels = [str(label).strip() for label in (options or [])]
        if len(labels) < MIN_OPTIONS or not all(labels):
            raise ValidationError(f"At least {MIN_OPTIONS} non-blank options are required")

        now = _utcnow()

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            # 新议题的 order 比当前最小值还小 1，保证排在最前
            min_order = min((p.order for p in state.proposals), default=0)

            proposal = Proposal(
                id=str(uuid4()),
                title=title,
                description=(description or "").strip(),
                created_at=now,
                deadline=deadline or now + DEFAULT_VOTING_PERIOD,
                options=tuple(
                    ProposalOption(id=f"opt-{idx}", label=label, count=0)
                    for idx, label in enumerate(labels)
                ),
                status=ProposalStatus.ACTIVE,
                total_votes=0,
                voted_user_ids=(),
                is_visible=True,
                order=min_order - 1,
            )
            state.proposals.append(proposal)

        logger.info(f"Proposal {proposal.id} created with {len(labels)} options")
        return proposal

    def cast_vote(
        self,
        *,
        proposal_id: str,
        option_id: str,
        voter_id: str,
    ) -> Proposal:
        '''
        业主投票；同一业主重复投票为静默无操作，返回未变化的议题

        :param proposal_id: 议题ID
        :type proposal_id: str
        :param option_id: 选项ID
        :type option_id: str
        :param voter_id: 投票人ID（必须是已认证业主）
        :type voter_id: str
        :rtype: Proposal
        '''
        with self.store.transaction() as state:
            snapshot = state.snapshot()

            voter = snapshot.find_user(voter_id)
            if not voter:
                raise NotFoundError("Voter not found", entity_id=voter_id)

            idx = _proposal_index(state, proposal_id)
            proposal = state.proposals[idx]

            if not proposal.is_active:
                raise InvalidStateError("Proposal is closed", entity_id=proposal_id)

            if not voter.is_verified_owner:
                if voter.status != UserStatus.VERIFIED:
                    raise PermissionDeniedError("Voter is not verified")
                raise PermissionDeniedError("Only owners can vote")

            if proposal.has_voted(voter_id):
                return proposal  # 已投过票，保持幂等

            if proposal.find_option(option_id) is None:
                raise ValidationError(f"Unknown option '{option_id}'", entity_id=proposal_id)

            updated = proposal.model_copy(
                update={
                    "total_votes": proposal.total_votes + 1,
                    "voted_user_ids": proposal.voted_user_ids + (voter_id,),
                    "options": tuple(
                        opt.model_copy(update={"count": opt.count + 1})
                        if opt.id == option_id else opt
                        for opt in proposal.options
                    ),
                }
            )
            state.proposals[idx] = updated

        logger.info(f"Vote recorded on {proposal_id}")
        return updated

    def close_proposal(self, *, operator_id: str, proposal_id: str) -> Proposal:
        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = _proposal_index(state, proposal_id)
            proposal = state.proposals[idx]
            if not proposal.is_active:
                raise InvalidStateError("Proposal already closed", entity_id=proposal_id)

            updated = proposal.model_copy(update={"status": ProposalStatus.CLOSED})
            state.proposals[idx] = updated

        logger.info(f"Proposal {proposal_id} closed")
        return updated

    def edit_proposal(
        self,
        *,
        operator_id: str,
        proposal_id: str,
        updates: ProposalUpdate,
    ) -> Proposal:
        '''
        修改标题、描述、截止时间、选项文字；不影响状态、票数与投票人
        '''
        changes = {}
        if updates.title is not None:
            if not updates.title.strip():
                raise ValidationError("title cannot be blank")
            changes["title"] = updates.title.strip()
        if updates.description is not None:
            changes["description"] = updates.description.strip()
        if updates.deadline is not None:
            changes["deadline"] = updates.deadline

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = _proposal_index(state, proposal_id)
            proposal = state.proposals[idx]

            if updates.option_labels:
                known = {opt.id for opt in proposal.options}
                unknown = set(updates.option_labels) - known
                if unknown:
                    raise ValidationError(
                        f"Unknown option(s): {', '.join(sorted(unknown))}",
                        entity_id=proposal_id,
                    )
                new_options = []
                for opt in proposal.options:
                    label = updates.option_labels.get(opt.id)
                    if label is None:
                        new_options.append(opt)
                        continue
                    if not label.strip():
                        raise ValidationError("Option label cannot be blank", entity_id=proposal_id)
                    new_options.append(opt.model_copy(update={"label": label.strip()}))
                changes["options"] = tuple(new_options)

            if not changes:
                return proposal  # 无需更新

            updated = proposal.model_copy(update=changes)
            state.proposals[idx] = updated

        logger.info(f"Proposal {proposal_id} updated fields {sorted(changes)}")
        return updated

    def toggle_visibility(self, *, operator_id: str, proposal_id: str) -> Proposal:
        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = _proposal_index(state, proposal_id)
            proposal = state.proposals[idx]
            updated = proposal.model_copy(update={"is_visible": not proposal.is_visible})
            state.proposals[idx] = updated

        logger.info(f"Proposal {proposal_id} visible={updated.is_visible}")
        return updated

    def reorder_proposals(
        self,
        *,
        operator_id: str,
        sequence: Sequence[str],
    ) -> List[Proposal]:
        '''
        整体重排：sequence 必须恰好包含全部议题ID，order 重新赋值为下标
        '''
        sequence = list(sequence)

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            existing = {p.id for p in state.proposals}
            if len(sequence) != len(set(sequence)) or set(sequence) != existing:
                raise ValidationError("Sequence must list every proposal exactly once")

            position = {pid: index for index, pid in enumerate(sequence)}
            state.proposals[:] = [
                p.model_copy(update={"order": position[p.id]}) for p in state.proposals
            ]
            result = view_service.sorted_by_order(state.proposals)

        logger.info(f"Reordered {len(sequence)} proposal(s)")
        return result

    def move_proposal(
        self,
        *,
        operator_id: str,
        proposal_id: str,
        new_index: int,
    ) -> List[Proposal]:
        '''拖拽排序：把一个议题移动到 new_index，其余保持相对顺序'''
        current = [p.id for p in view_service.sorted_by_order(self.store.snapshot().proposals)]
        if proposal_id not in current:
            raise NotFoundError("Proposal not found", entity_id=proposal_id)
        if not 0 <= new_index < len(current):
            raise ValidationError(f"Index {new_index} out of range")

        current.remove(proposal_id)
        current.insert(new_index, proposal_id)
        return self.reorder_proposals(operator_id=operator_id, sequence=current)
