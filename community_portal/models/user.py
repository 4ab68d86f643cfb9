# community_portal/models/user.py
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from community_portal.db.enums import UserRole, UserStatus
from community_portal.models.base import PortalModel


class User(PortalModel):
    """
    Resident or administrator account.
    phone_number is the login identifier and is unique across all users.
    """

    id: str
    name: str
    role: UserRole = UserRole.OWNER
    building: str
    unit: str
    status: UserStatus = UserStatus.PENDING
    phone_number: str
    password: Optional[str] = None           # 存储的凭证（bcrypt 哈希或明文，取决于 PASSWORD_SCHEME）
    managed_building: Optional[str] = None   # 仅 BUILDING_ADMIN 有值
    avatar: Optional[str] = None             # 头像 URL，只随数据读写透传，没有操作会修改它

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    @property
    def is_building_admin(self) -> bool:
        return self.role == UserRole.BUILDING_ADMIN

    @property
    def is_verified_owner(self) -> bool:
        return self.role == UserRole.OWNER and self.status == UserStatus.VERIFIED


class UserUpdate(BaseModel):
    '''
    用户资料的部分更新，None 表示该字段不修改
    角色、状态、密码不走这里，分别由 promote/demote、verify_user、change_password 负责
    avatar 是只读字段，不接受修改
    '''
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: Optional[str] = None
    phone_number: Optional[str] = None
    building: Optional[str] = None
    unit: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
