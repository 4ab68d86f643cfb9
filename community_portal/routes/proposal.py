# community_portal/routes/proposal.py
from datetime import datetime
from typing import List, Optional

from flask import Blueprint
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from community_portal.errors import ValidationError
from community_portal.models.proposal import ProposalUpdate
from community_portal.routes.common import (
    current_user_id,
    get_store,
    json_body,
    ok,
    proposal_service,
    require_login,
    suggestion_service,
    view_service,
)
from community_portal.schemas.dto import ProposalDTO
from community_portal.services.permissions import require_super_admin

proposal_bp = Blueprint("proposal", __name__, url_prefix="/api/proposals")


class CreateProposalRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    description: str = ""
    options: List[str]
    deadline: Optional[datetime] = None


@proposal_bp.route("", methods=["GET"])
def list_proposals():
    """超级管理员：全部议题（含已关闭、已隐藏）"""
    check = require_login()
    if check:
        return check

    proposals = proposal_service().list_all(operator_id=current_user_id())
    return ok([p.to_record() for p in proposals])


@proposal_bp.route("", methods=["POST"])
def create_proposal():
    check = require_login()
    if check:
        return check

    req = CreateProposalRequest.model_validate(json_body())
    proposal = proposal_service().create_proposal(
        operator_id=current_user_id(),
        title=req.title,
        description=req.description,
        options=req.options,
        deadline=req.deadline,
    )
    return ok(proposal.to_record(), 201)


@proposal_bp.route("/<proposal_id>", methods=["PATCH"])
def edit_proposal(proposal_id):
    check = require_login()
    if check:
        return check

    updates = ProposalUpdate.model_validate(json_body())
    proposal = proposal_service().edit_proposal(
        operator_id=current_user_id(),
        proposal_id=proposal_id,
        updates=updates,
    )
    return ok(proposal.to_record())


@proposal_bp.route("/<proposal_id>/close", methods=["POST"])
def close_proposal(proposal_id):
    check = require_login()
    if check:
        return check

    proposal = proposal_service().close_proposal(
        operator_id=current_user_id(), proposal_id=proposal_id
    )
    return ok(proposal.to_record())


@proposal_bp.route("/<proposal_id>/visibility", methods=["POST"])
def toggle_visibility(proposal_id):
    check = require_login()
    if check:
        return check

    proposal = proposal_service().toggle_visibility(
        operator_id=current_user_id(), proposal_id=proposal_id
    )
    return ok(proposal.to_record())


@proposal_bp.route("/reorder", methods=["POST"])
def reorder_proposals():
    """整体重排：{"sequence": [id, ...]}"""
    check = require_login()
    if check:
        return check

    sequence = json_body().get("sequence")
    if not isinstance(sequence, list):
        raise ValidationError("sequence must be a list of proposal ids")

    proposals = proposal_service().reorder_proposals(
        operator_id=current_user_id(), sequence=sequence
    )
    return ok([p.to_record() for p in proposals])


@proposal_bp.route("/<proposal_id>/move", methods=["POST"])
def move_proposal(proposal_id):
    """拖拽排序：{"index": n}"""
    check = require_login()
    if check:
        return check

    index = json_body().get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValidationError("index must be an integer")

    proposals = proposal_service().move_proposal(
        operator_id=current_user_id(), proposal_id=proposal_id, new_index=index
    )
    return ok([p.to_record() for p in proposals])


@proposal_bp.route("/<proposal_id>/vote", methods=["POST"])
def cast_vote(proposal_id):
    """业主投票：{"optionId": "..."}"""
    check = require_login()
    if check:
        return check

    proposal = proposal_service().cast_vote(
        proposal_id=proposal_id,
        option_id=str(json_body().get("optionId", "")),
        voter_id=current_user_id(),
    )
    return ok(ProposalDTO.from_model(proposal).to_json())


@proposal_bp.route("/feed", methods=["GET"])
def owner_feed():
    """已认证业主的议题列表，投票后才能看到其他投票人"""
    check = require_login()
    if check:
        return check

    items = view_service().owner_feed(viewer_id=current_user_id())
    return ok([
        {
            "proposal": ProposalDTO.from_model(item.proposal).to_json(),
            "hasVoted": item.has_voted,
            "voters": [v.model_dump(mode="json", by_alias=True) for v in item.voters],
        }
        for item in items
    ])


@proposal_bp.route("/suggest", methods=["POST"])
def suggest():
    """AI 生成议题草稿，失败时返回兜底内容"""
    check = require_login()
    if check:
        return check

    # 只有超级管理员能发布议题，草稿也只对其开放
    require_super_admin(get_store().snapshot(), current_user_id())

    suggestion = suggestion_service().suggest(str(json_body().get("topic", "")))
    return ok(suggestion.model_dump(mode="json"))
