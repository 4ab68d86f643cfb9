from datetime import datetime, timedelta, timezone

import pytest

from community_portal.db.enums import ProposalStatus
from community_portal.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from community_portal.models.proposal import ProposalUpdate


def _counts(proposal):
    return {opt.label: opt.count for opt in proposal.options}


def _assert_tally_consistent(proposal):
    assert proposal.total_votes == sum(opt.count for opt in proposal.options)
    assert proposal.total_votes == len(proposal.voted_user_ids)
    assert len(set(proposal.voted_user_ids)) == len(proposal.voted_user_ids)


def test_create_proposal_defaults(proposal):
    assert proposal.status == ProposalStatus.ACTIVE
    assert proposal.total_votes == 0
    assert proposal.voted_user_ids == ()
    assert proposal.is_visible is True
    assert [opt.id for opt in proposal.options] == ["opt-0", "opt-1"]
    assert proposal.deadline - proposal.created_at == timedelta(days=7)


def test_new_proposals_surface_first(proposal_service, proposal, admin_id):
    second = proposal_service.create_proposal(
        operator_id=admin_id, title="第二个", description="", options=["同意", "反对"]
    )
    assert second.order < proposal.order

    listed = proposal_service.list_all(operator_id=admin_id)
    assert [p.id for p in listed] == [second.id, proposal.id]


def test_create_proposal_validation(proposal_service, admin_id):
    with pytest.raises(ValidationError):
        proposal_service.create_proposal(operator_id=admin_id, title="t", description="", options=["only"])
    with pytest.raises(ValidationError):
        proposal_service.create_proposal(operator_id=admin_id, title="t", description="", options=["a", " "])
    with pytest.raises(ValidationError):
        proposal_service.create_proposal(operator_id=admin_id, title="", description="", options=["a", "b"])


def test_create_proposal_super_admin_only(proposal_service, verified_owner):
    owner = verified_owner()
    with pytest.raises(PermissionDeniedError):
        proposal_service.create_proposal(operator_id=owner.id, title="t", description="", options=["a", "b"])


def test_create_proposal_with_explicit_deadline(proposal_service, admin_id):
    deadline = datetime(2030, 1, 1, tzinfo=timezone.utc)
    created = proposal_service.create_proposal(
        operator_id=admin_id, title="t", description="", options=["a", "b"], deadline=deadline
    )
    assert created.deadline == deadline


def test_vote_then_repeat_vote_is_noop(proposal_service, proposal, verified_owner):
    voter = verified_owner()
    option_a, option_b = proposal.options

    after_first = proposal_service.cast_vote(
        proposal_id=proposal.id, option_id=option_b.id, voter_id=voter.id
    )
    assert after_first.total_votes == 1
    assert _counts(after_first) == {"A": 0, "B": 1}

    after_second = proposal_service.cast_vote(
        proposal_id=proposal.id, option_id=option_a.id, voter_id=voter.id
    )
    assert after_second == after_first
    assert _counts(after_second) == {"A": 0, "B": 1}
    assert after_second.total_votes == 1
    _assert_tally_consistent(after_second)


def test_tally_stays_consistent_across_voters(proposal_service, proposal, verified_owner, store):
    voters = [verified_owner() for _ in range(5)]
    for i, voter in enumerate(voters):
        option = proposal.options[i % 2]
        proposal_service.cast_vote(proposal_id=proposal.id, option_id=option.id, voter_id=voter.id)
        proposal_service.cast_vote(proposal_id=proposal.id, option_id=option.id, voter_id=voter.id)

    current = store.snapshot().find_proposal(proposal.id)
    assert current.total_votes == 5
    assert _counts(current) == {"A": 3, "B": 2}
    _assert_tally_consistent(current)


def test_only_verified_owners_vote(proposal_service, proposal, register_owner, verified_owner, user_service, admin_id):
    pending = register_owner()
    with pytest.raises(PermissionDeniedError):
        proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-0", voter_id=pending.id)

    steward = verified_owner()
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="1号楼")
    with pytest.raises(PermissionDeniedError):
        proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-0", voter_id=steward.id)

    with pytest.raises(PermissionDeniedError):
        proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-0", voter_id=admin_id)


def test_vote_for_unknown_option_is_rejected(proposal_service, proposal, verified_owner, store):
    voter = verified_owner()
    with pytest.raises(ValidationError):
        proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-9", voter_id=voter.id)

    assert store.snapshot().find_proposal(proposal.id) == proposal


def test_vote_on_missing_proposal(proposal_service, verified_owner):
    voter = verified_owner()
    with pytest.raises(NotFoundError):
        proposal_service.cast_vote(proposal_id="missing", option_id="opt-0", voter_id=voter.id)


def test_closing_is_irreversible(proposal_service, proposal, verified_owner, admin_id):
    voter = verified_owner()
    closed = proposal_service.close_proposal(operator_id=admin_id, proposal_id=proposal.id)
    assert closed.status == ProposalStatus.CLOSED

    with pytest.raises(InvalidStateError):
        proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-0", voter_id=voter.id)
    with pytest.raises(InvalidStateError):
        proposal_service.close_proposal(operator_id=admin_id, proposal_id=proposal.id)

    edited = proposal_service.edit_proposal(
        operator_id=admin_id, proposal_id=proposal.id, updates=ProposalUpdate(title="新标题")
    )
    toggled = proposal_service.toggle_visibility(operator_id=admin_id, proposal_id=proposal.id)
    assert edited.status == ProposalStatus.CLOSED
    assert toggled.status == ProposalStatus.CLOSED


def test_edit_proposal_keeps_votes(proposal_service, proposal, verified_owner, admin_id):
    voter = verified_owner()
    voted = proposal_service.cast_vote(proposal_id=proposal.id, option_id="opt-1", voter_id=voter.id)
    new_deadline = datetime(2031, 6, 1, tzinfo=timezone.utc)

    edited = proposal_service.edit_proposal(
        operator_id=admin_id,
        proposal_id=proposal.id,
        updates=ProposalUpdate(
            title="修改后的标题",
            deadline=new_deadline,
            option_labels={"opt-1": "支持"},
        ),
    )

    assert edited.title == "修改后的标题"
    assert edited.description == proposal.description
    assert edited.deadline == new_deadline
    assert [opt.label for opt in edited.options] == ["A", "支持"]
    assert [opt.count for opt in edited.options] == [0, 1]
    assert edited.voted_user_ids == voted.voted_user_ids
    assert edited.total_votes == 1
    assert edited.status == voted.status


def test_edit_proposal_unknown_option(proposal_service, proposal, admin_id):
    with pytest.raises(ValidationError):
        proposal_service.edit_proposal(
            operator_id=admin_id,
            proposal_id=proposal.id,
            updates=ProposalUpdate(option_labels={"opt-7": "x"}),
        )


def test_toggle_visibility(proposal_service, proposal, admin_id):
    hidden = proposal_service.toggle_visibility(operator_id=admin_id, proposal_id=proposal.id)
    assert hidden.is_visible is False
    shown = proposal_service.toggle_visibility(operator_id=admin_id, proposal_id=proposal.id)
    assert shown.is_visible is True


def test_reorder_is_total_replacement(proposal_service, admin_id):
    created = [
        proposal_service.create_proposal(
            operator_id=admin_id, title=f"议题{i}", description="", options=["a", "b"]
        )
        for i in range(4)
    ]
    sequence = [created[2].id, created[0].id, created[3].id, created[1].id]

    result = proposal_service.reorder_proposals(operator_id=admin_id, sequence=sequence)

    assert [p.id for p in result] == sequence
    assert [p.order for p in result] == [0, 1, 2, 3]
    assert [p.id for p in proposal_service.list_all(operator_id=admin_id)] == sequence


def test_reorder_rejects_partial_sequence(proposal_service, proposal, admin_id):
    other = proposal_service.create_proposal(
        operator_id=admin_id, title="t", description="", options=["a", "b"]
    )
    with pytest.raises(ValidationError):
        proposal_service.reorder_proposals(operator_id=admin_id, sequence=[proposal.id])
    with pytest.raises(ValidationError):
        proposal_service.reorder_proposals(operator_id=admin_id, sequence=[proposal.id, proposal.id])
    with pytest.raises(ValidationError):
        proposal_service.reorder_proposals(operator_id=admin_id, sequence=[proposal.id, other.id, "x"])


def test_move_proposal(proposal_service, admin_id):
    created = [
        proposal_service.create_proposal(
            operator_id=admin_id, title=f"议题{i}", description="", options=["a", "b"]
        )
        for i in range(3)
    ]
    # 新建的排在前面：当前顺序为 2, 1, 0
    result = proposal_service.move_proposal(
        operator_id=admin_id, proposal_id=created[2].id, new_index=2
    )
    assert [p.id for p in result] == [created[1].id, created[0].id, created[2].id]

    with pytest.raises(ValidationError):
        proposal_service.move_proposal(operator_id=admin_id, proposal_id=created[0].id, new_index=5)
