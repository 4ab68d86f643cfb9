# community_portal/routes/public.py
from flask import Blueprint

from community_portal.routes.common import ok, view_service
from community_portal.schemas.dto import ProposalDTO

public_bp = Blueprint("public", __name__, url_prefix="/api/public")


@public_bp.route("/proposals", methods=["GET"])
def public_proposals():
    """未登录首页：可见且进行中的议题"""
    proposals = view_service().public_feed()
    return ok([ProposalDTO.from_model(p).to_json() for p in proposals])


@public_bp.route("/stats", methods=["GET"])
def public_stats():
    stats = view_service().public_stats()
    return ok(stats.model_dump(mode="json", by_alias=True))
