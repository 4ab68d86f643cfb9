'''应用配置（只读取环境变量，不产生副作用）
被 app_factory / run.py / auto_init 共同使用，.env 中的值优先于默认值'''
# community_portal/config.py
import os
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()

# 项目根目录（community_portal 的上一级）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # 确保 SECRET_KEY 是字符串类型
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")

    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{os.path.join(BASE_DIR, 'community_portal.db')}",
    )

    # 密码存储方式：bcrypt（默认）或 plain（兼容旧数据的明文）
    PASSWORD_SCHEME = os.getenv("PASSWORD_SCHEME", "bcrypt")

    # 是否写入演示用的住户与议题
    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA")

    # AI 议题生成使用的模型
    SUGGESTION_MODEL = os.getenv("SUGGESTION_MODEL", "google-gla:gemini-2.5-flash")

    # Session 配置
    SESSION_TYPE = "filesystem"
    SESSION_PERMANENT = False
    SESSION_KEY_PREFIX = "community_portal:"
    SESSION_FILE_DIR = os.path.join(BASE_DIR, "flask_session")

    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    DATABASE_URL = "sqlite://"
    PASSWORD_SCHEME = "plain"
    SEED_DEMO_DATA = False


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "default": Config,
}
