# community_portal/services/permissions.py
from community_portal.errors import NotFoundError, PermissionDeniedError
from community_portal.models.user import User
from community_portal.store import PortalSnapshot


def load_operator(snapshot: PortalSnapshot, operator_id: str) -> User:
    operator = snapshot.find_user(operator_id)
    if not operator:
        raise NotFoundError("Operator not found", entity_id=operator_id)
    return operator


def require_super_admin(snapshot: PortalSnapshot, operator_id: str) -> User:
    operator = load_operator(snapshot, operator_id)
    if not operator.is_super_admin:
        raise PermissionDeniedError("Super admin only")
    return operator
