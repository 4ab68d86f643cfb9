# community_portal/services/auth_service.py
from uuid import uuid4

from community_portal.db.enums import UserRole, UserStatus
from community_portal.errors import (
    AuthError,
    DuplicatePhoneError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from community_portal.logger import get_logger
from community_portal.models.user import User
from community_portal.services.password_hasher import (
    MAX_PASSWORD_BYTES,
    PasswordHasher,
    password_too_long,
)
from community_portal.store import PortalStore

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def _require_text(**fields: str) -> dict:
    cleaned = {}
    missing = []
    for name, value in fields.items():
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"Field '{name}' must be a string")
        value = (value or "").strip()
        if not value:
            missing.append(name)
        cleaned[name] = value
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    return cleaned


def _check_password_size(password: str) -> None:
    if password_too_long(password):
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes (UTF-8)"
        )


class AuthService:
    """
    Registration, login and password change.

    No lockout / rate limiting / session handling here;
    the route layer owns the session.
    """

    def __init__(self, store: PortalStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    def login(self, *, phone_number: str, password: str) -> User:
        """
        Authenticate by phone number + password.

        :param phone_number: Login phone number (exact match)
        :type phone_number: str
        :param password: Plaintext password
        :type password: str
        """
        user = self.store.snapshot().find_user_by_phone(phone_number)

        if not user or not user.password:
            raise AuthError("Invalid phone number or password")

        if not self.hasher.verify(password, user.password):
            raise AuthError("Invalid phone number or password")

        logger.info(f"User {user.id} logged in")
        return user

    def register(
        self,
        *,
        name: str,
        phone_number: str,
        password: str,
        building: str,
        unit: str,
    ) -> User:
        """
        Self-registration. Always yields an OWNER waiting for verification.

        :param name: Display name
        :param phone_number: Login phone number (unique)
        :param password: Plaintext password
        :param building: Residence building, e.g. "3号楼"
        :param unit: Unit number
        """
        fields = _require_text(
            name=name,
            phone_number=phone_number,
            password=password,
            building=building,
            unit=unit,
        )
        _check_password_size(fields["password"])

        with self.store.transaction() as state:
            # 1️⃣ 手机号唯一性校验（任何角色、任何状态）
            if any(u.phone_number == fields["phone_number"] for u in state.users):
                raise DuplicatePhoneError(
                    f"Phone number '{fields['phone_number']}' already registered"
                )

            # 2️⃣ 创建用户
            user = User(
                id=str(uuid4()),
                name=fields["name"],
                role=UserRole.OWNER,
                status=UserStatus.PENDING,
                building=fields["building"],
                unit=fields["unit"],
                phone_number=fields["phone_number"],
                password=self.hasher.hash(fields["password"]),
            )
            state.users.append(user)

        logger.info(f"Registered user {user.id} in {user.building}-{user.unit}")
        return user

    def change_password(
        self,
        *,
        operator_id: str,
        user_id: str,
        new_password: str,
    ) -> None:
        """
        Overwrite the stored password. No old-password confirmation.

        :param operator_id: The user themself, or the super admin
        :type operator_id: str
        :param user_id: ID of the user whose password changes
        :type user_id: str
        :param new_password: New plaintext password
        :type new_password: str
        """
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        _check_password_size(new_password)

        with self.store.transaction() as state:
            operator = state.snapshot().find_user(operator_id)
            if not operator:
                raise NotFoundError("Operator not found", entity_id=operator_id)
            if operator.id != user_id and not operator.is_super_admin:
                raise PermissionDeniedError("Cannot change another user's password")

            idx = state.user_index(user_id)
            if idx is None:
                raise NotFoundError("User not found", entity_id=user_id)

            state.users[idx] = state.users[idx].model_copy(
                update={"password": self.hasher.hash(new_password)}
            )

        logger.info(f"Password changed for user {user_id} by {operator_id}")
