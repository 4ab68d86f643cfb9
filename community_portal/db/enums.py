# community_portal/db/enums.py
import enum

# User related enums
class UserRole(str, enum.Enum):
    OWNER = "OWNER"
    BUILDING_ADMIN = "BUILDING_ADMIN"   # 楼栋管家，只负责 managed_building 内的审核
    SUPER_ADMIN = "SUPER_ADMIN"         # 全局唯一，由初始化写入


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"

# Proposal related enums
class ProposalStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"   # 终态，不可重新开启


class PasswordScheme(str, enum.Enum):
    BCRYPT = "bcrypt"
    PLAIN = "plain"
