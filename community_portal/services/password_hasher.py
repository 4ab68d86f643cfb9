# community_portal/services/password_hasher.py
import bcrypt

from community_portal.db.enums import PasswordScheme
from community_portal.errors import ValidationError

# bcrypt 只处理前 72 字节，新版本对超长输入直接抛 ValueError
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """
    Credential storage strategy.
    Callers only hash/verify through this interface, so the storage
    scheme can change without touching login / registration code.
    """

    def hash(self, password: str) -> str:
        raise NotImplementedError

    def verify(self, password: str, stored: str) -> bool:
        raise NotImplementedError

    def is_hashed(self, value: str) -> bool:
        raise NotImplementedError

    def prepare(self, value: str) -> str:
        '''导入数据时使用：已经是本方案的凭证就原样保留，否则按明文处理'''
        return value if self.is_hashed(value) else self.hash(value)


class BcryptPasswordHasher(PasswordHasher):
    _PREFIXES = ("$2a$", "$2b$", "$2y$")

    def hash(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        if password_too_long(password):
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes (UTF-8)"
            )
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    def verify(self, password: str, stored: str) -> bool:
        '''verify a password against its hash'''
        if not self.is_hashed(stored) or password_too_long(password):
            return False  # 超长的密码不可能是注册时存下的
        return bcrypt.checkpw(
            password.encode("utf-8"),
            stored.encode("utf-8"),
        )

    def is_hashed(self, value: str) -> bool:
        return value.startswith(self._PREFIXES) and len(value) == 60


class PlaintextPasswordHasher(PasswordHasher):
    """Stores passwords as given. Kept for data created by the browser portal."""

    def hash(self, password: str) -> str:
        return password

    def verify(self, password: str, stored: str) -> bool:
        return password == stored

    def is_hashed(self, value: str) -> bool:
        return False


def build_password_hasher(scheme) -> PasswordHasher:
    scheme = PasswordScheme(scheme)
    if scheme == PasswordScheme.PLAIN:
        return PlaintextPasswordHasher()
    return BcryptPasswordHasher()
