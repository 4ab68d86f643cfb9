# create_admin.py
"""
初始化 / 恢复超级管理员，可选写入演示数据
⚠️ 仅用于开发 / 手动维护

用法：
    python create_admin.py            # 确保超级管理员存在
    python create_admin.py --demo     # 同时写入演示住户与议题
"""
import sys

from community_portal.config import Config
from community_portal.db.auto_init import auto_init, open_store
from community_portal.services.password_hasher import build_password_hasher


def create_admin(seed_demo: bool = False):
    try:
        store = open_store(Config.DATABASE_URL)
        hasher = build_password_hasher(Config.PASSWORD_SCHEME)
        auto_init(store, hasher, seed_demo=seed_demo)
        print("✅ 超级管理员检查完成")
    except Exception as e:
        print(f"❌ 初始化失败: {e}")
        raise


if __name__ == "__main__":
    create_admin(seed_demo="--demo" in sys.argv[1:])
