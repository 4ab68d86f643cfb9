# community_portal/routes/common.py
from typing import Any, Optional

from flask import current_app, jsonify, request, session

from community_portal.errors import ErrorType, ValidationError
from community_portal.schemas.api_result import ApiResult
from community_portal.services.auth_service import AuthService
from community_portal.services.proposal_service import ProposalService
from community_portal.services.suggestion_service import SuggestionService
from community_portal.services.user_service import UserService
from community_portal.services.view_service import ViewService
from community_portal.store import PortalStore


def get_store() -> PortalStore:
    return current_app.extensions["portal_store"]


def auth_service() -> AuthService:
    return AuthService(get_store(), current_app.extensions["password_hasher"])


def user_service() -> UserService:
    return UserService(get_store(), current_app.extensions["password_hasher"])


def proposal_service() -> ProposalService:
    return ProposalService(get_store())


def view_service() -> ViewService:
    return ViewService(get_store())


def suggestion_service() -> SuggestionService:
    return current_app.extensions["suggestion_service"]


def ok(data: Any = None, status: int = 200):
    return jsonify(ApiResult(ok=True, data=data).model_dump(mode="json")), status


def fail(error_type: ErrorType, message: str, status: int):
    result = ApiResult(ok=False, error_type=error_type, error_message=message)
    return jsonify(result.model_dump(mode="json")), status


def current_user_id() -> Optional[str]:
    return session.get("user_id")


def require_login():
    """检查登录状态"""
    if "user_id" not in session:
        return fail(ErrorType.AUTH_REQUIRED, "Login required", 401)
    return None


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body
