# community_portal/services/user_service.py
import time
from datetime import date
from typing import Any, Dict, List, Optional

from community_portal.db.enums import UserRole, UserStatus
from community_portal.errors import (
    DuplicatePhoneError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from community_portal.logger import get_logger
from community_portal.models.user import User, UserUpdate
from community_portal.schemas.views import BuildingRoster
from community_portal.services import view_service
from community_portal.services.password_hasher import PasswordHasher
from community_portal.services.permissions import load_operator, require_super_admin
from community_portal.store import PortalStore

logger = get_logger(__name__)

# 导入时缺省字段的取值
DEFAULT_IMPORT_NAME = "未命名"
DEFAULT_IMPORT_LOCATION = "未知"
DEFAULT_IMPORT_PASSWORD = "123456"

EXPORT_FIELDS = {
    "id",
    "name",
    "role",
    "building",
    "unit",
    "status",
    "phone_number",
    "password",
    "managed_building",
}


def _record_text(record: Dict[str, Any], *keys: str) -> Optional[str]:
    '''导入记录同时接受 camelCase 与 snake_case 字段名'''
    for key in keys:
        value = record.get(key)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return None


class UserService:
    """
    Verification workflow and user administration.

    - verify / reject pending owners (building admin scoped, or super admin)
    - promote / demote building admins (super admin)
    - edit / remove users
    - bulk import / export

    Login, registration and password change live in AuthService.
    """

    def __init__(self, store: PortalStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    # ======================================================
    # 🔎 Queries
    # ======================================================

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.store.snapshot().find_user(user_id)

    def list_users(self, *, operator_id: str) -> List[User]:
        snapshot = self.store.snapshot()
        require_super_admin(snapshot, operator_id)
        return [u for u in snapshot.users if not u.is_super_admin]

    def orphaned_pending_users(self, *, operator_id: str) -> List[User]:
        '''待审核但所在楼栋没有管家的业主，只对超级管理员可见'''
        snapshot = self.store.snapshot()
        require_super_admin(snapshot, operator_id)
        return view_service.orphaned_pending_users(snapshot)

    def building_roster(self, *, operator_id: str) -> BuildingRoster:
        snapshot = self.store.snapshot()
        operator = load_operator(snapshot, operator_id)
        if not operator.is_building_admin or not operator.managed_building:
            raise PermissionDeniedError("Building admin only")
        return view_service.building_roster(snapshot, operator.managed_building)

    # ======================================================
    # ✅ Verification
    # ======================================================

    def verify_user(
        self,
        *,
        operator_id: str,
        user_id: str,
        approve: bool,
    ) -> User:
        """
        PENDING -> VERIFIED (approve) / REJECTED.

        :param operator_id: Super admin, or building admin managing the user's building
        :type operator_id: str
        :param user_id: ID of the pending user
        :type user_id: str
        :param approve: True to verify, False to reject
        :type approve: bool
        """
        with self.store.transaction() as state:
            snapshot = state.snapshot()
            operator = load_operator(snapshot, operator_id)

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)
            target = state.users[idx]

            if not operator.is_super_admin:
                # 楼栋管家只能审核本楼的业主，不能审核其他管理员
                if not (
                    operator.is_building_admin
                    and operator.managed_building
                    and target.role == UserRole.OWNER
                    and operator.managed_building == target.building
                ):
                    raise PermissionDeniedError(
                        "User is outside the operator's managed building"
                    )

            if target.status != UserStatus.PENDING:
                raise InvalidStateError(
                    f"User is already {target.status.value}", entity_id=user_id
                )

            new_status = UserStatus.VERIFIED if approve else UserStatus.REJECTED
            updated = target.model_copy(update={"status": new_status})
            state.users[idx] = updated

        logger.info(f"User {user_id} -> {new_status.value} by {operator_id}")
        return updated

    # ======================================================
    # 🛡️ Roles
    # ======================================================

    def promote(
        self,
        *,
        operator_id: str,
        user_id: str,
        managed_building: str,
    ) -> User:
        """
        Make a user the building admin of `managed_building`.
        The managed building may differ from the user's own residence.
        """
        managed_building = (managed_building or "").strip()
        if not managed_building:
            raise ValidationError("managed_building is required")

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)
            target = state.users[idx]
            if target.is_super_admin:
                raise PermissionDeniedError("Super admin role cannot be changed")

            updated = target.model_copy(
                update={
                    "role": UserRole.BUILDING_ADMIN,
                    "managed_building": managed_building,
                }
            )
            state.users[idx] = updated

        logger.info(f"User {user_id} promoted to building admin of {managed_building}")
        return updated

    def demote(self, *, operator_id: str, user_id: str) -> User:
        """
        Back to OWNER; managed_building is cleared, so pending owners of that
        building become orphaned unless another admin still covers it.
        """
        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)
            target = state.users[idx]
            if target.is_super_admin:
                raise PermissionDeniedError("Super admin role cannot be changed")

            updated = target.model_copy(
                update={"role": UserRole.OWNER, "managed_building": None}
            )
            state.users[idx] = updated

        logger.info(f"User {user_id} demoted to owner")
        return updated

    # ======================================================
    # ✏️ Maintenance
    # ======================================================

    def remove_user(self, *, operator_id: str, user_id: str) -> None:
        """
        Permanently delete a user record (no soft delete).

        - super admin: anyone but itself
        - building admin: pending / verified owners of its managed building
        """
        with self.store.transaction() as state:
            operator = load_operator(state.snapshot(), operator_id)

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)
            target = state.users[idx]

            if operator.is_super_admin:
                if target.id == operator.id:
                    raise PermissionDeniedError("Super admin cannot remove itself")
            elif operator.is_building_admin:
                in_scope = (
                    target.role == UserRole.OWNER
                    and target.status in (UserStatus.PENDING, UserStatus.VERIFIED)
                    and operator.managed_building is not None
                    and target.building == operator.managed_building
                )
                if not in_scope:
                    raise PermissionDeniedError(
                        "User is outside the operator's managed building"
                    )
            else:
                raise PermissionDeniedError("Owners cannot remove users")

            del state.users[idx]

        logger.info(f"User {user_id} removed by {operator_id}")

    def edit_user(
        self,
        *,
        operator_id: str,
        user_id: str,
        updates: UserUpdate,
    ) -> User:
        """
        Partial profile update (name / phone number / building / unit).
        Phone numbers stay unique across all users.
        """
        changes = updates.changes()
        for field, value in changes.items():
            if not value.strip():
                raise ValidationError(f"{field} cannot be blank")
            changes[field] = value.strip()

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)
            user = state.users[idx]

            if not changes:
                return user  # 无需更新

            phone = changes.get("phone_number")
            if phone is not None and phone != user.phone_number:
                if any(u.phone_number == phone for u in state.users if u.id != user_id):
                    raise DuplicatePhoneError(f"Phone number '{phone}' already registered")

            updated = user.model_copy(update=changes)
            state.users[idx] = updated

        logger.info(f"User {user_id} updated fields {sorted(changes)}")
        return updated

    # ======================================================
    # 📦 Import / Export
    # ======================================================

    def import_users(self, *, operator_id: str, records: Any) -> int:
        """
        Bulk-create verified owners from partial records.

        Records without a phone number, or whose phone number is already used
        (by an existing user or an earlier record of the same batch), are skipped.

        :return: number of users actually inserted
        :rtype: int
        """
        if not isinstance(records, list):
            raise ValidationError("Import payload must be a JSON array of users")

        timestamp = int(time.time() * 1000)

        with self.store.transaction() as state:
            require_super_admin(state.snapshot(), operator_id)

            taken = {u.phone_number for u in state.users}
            new_users: List[User] = []

            for index, record in enumerate(records):
                if not isinstance(record, dict):
                    continue
                phone = _record_text(record, "phoneNumber", "phone_number")
                if not phone or phone in taken:
                    continue

                password = _record_text(record, "password") or DEFAULT_IMPORT_PASSWORD
                new_users.append(
                    User(
                        id=f"u-imported-{timestamp}-{index}",
                        name=_record_text(record, "name") or DEFAULT_IMPORT_NAME,
                        role=UserRole.OWNER,
                        status=UserStatus.VERIFIED,
                        building=_record_text(record, "building") or DEFAULT_IMPORT_LOCATION,
                        unit=_record_text(record, "unit") or DEFAULT_IMPORT_LOCATION,
                        phone_number=phone,
                        password=self.hasher.prepare(password),
                    )
                )
                taken.add(phone)

            state.users.extend(new_users)

        logger.info(f"Imported {len(new_users)} of {len(records)} user record(s)")
        return len(new_users)

    def export_users(self, *, operator_id: str) -> List[Dict[str, Any]]:
        '''导出除超级管理员外的全部用户（只读）'''
        snapshot = self.store.snapshot()
        require_super_admin(snapshot, operator_id)
        return [
            u.model_dump(mode="json", by_alias=True, include=EXPORT_FIELDS)
            for u in snapshot.users
            if not u.is_super_admin
        ]

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"community_users_export_{today.isoformat()}.json"
