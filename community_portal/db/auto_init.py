"""
启动时的初始化检查
- 建表
- 确保唯一的超级管理员存在
- 按需写入演示数据
"""
from datetime import datetime, timedelta, timezone

from community_portal.db import seed_data
from community_portal.db.init_db import init_db
from community_portal.db.session import configure, get_session
from community_portal.logger import get_logger
from community_portal.models.proposal import Proposal, ProposalOption
from community_portal.models.user import User
from community_portal.services.password_hasher import PasswordHasher
from community_portal.store import PortalStore, SqlKeyValueBackend

logger = get_logger(__name__)


def open_store(database_url: str) -> PortalStore:
    """绑定数据库、建表，返回以 kv_entries 表为后端的 PortalStore"""
    engine = configure(database_url)
    init_db(engine)
    return PortalStore(SqlKeyValueBackend(get_session))


def check_super_admin_exists(store: PortalStore) -> bool:
    return store.snapshot().super_admin() is not None


def create_super_admin(store: PortalStore, hasher: PasswordHasher) -> None:
    """创建超级管理员（固定手机号与密码，作为恢复/引导凭证）"""
    with store.transaction() as state:
        if state.snapshot().super_admin() is not None:
            logger.info("ℹ️  超级管理员已存在，跳过创建")
            return
        if state.snapshot().find_user_by_phone(seed_data.SUPER_ADMIN_PHONE):
            raise RuntimeError(
                f"Phone {seed_data.SUPER_ADMIN_PHONE} is taken by a non-admin user"
            )

        record = dict(seed_data.SUPER_ADMIN)
        record["password"] = hasher.hash(record["password"])
        state.users.insert(0, User.model_validate(record))

    logger.info("✅ 超级管理员创建成功!")
    logger.info(f"   账号: {seed_data.SUPER_ADMIN_PHONE}")
    logger.info("   ⚠️  请登录后立即修改密码！")


def seed_demo_data(store: PortalStore, hasher: PasswordHasher) -> None:
    """写入演示住户与议题，只在对应集合为空（或只有超级管理员）时执行"""
    demo_password = hasher.hash(seed_data.DEMO_PASSWORD)
    now = datetime.now(timezone.utc)

    with store.transaction() as state:
        if all(u.is_super_admin for u in state.users):
            taken = {u.phone_number for u in state.users}
            for record in seed_data.DEMO_USERS:
                if record["phone_number"] in taken:
                    continue
                state.users.append(User.model_validate({**record, "password": demo_password}))
            logger.info(f"👤 写入演示住户 {len(seed_data.DEMO_USERS)} 位")

        if not state.proposals:
            for i, (title, description) in enumerate(seed_data.DEMO_TOPICS):
                state.proposals.append(
                    Proposal(
                        id=f"v-mock-{i}",
                        title=title,
                        description=description,
                        created_at=now,
                        deadline=now + timedelta(days=(i % 10) + 1),
                        options=tuple(
                            ProposalOption(id=f"opt{n + 1}", label=label)
                            for n, label in enumerate(seed_data.DEMO_OPTIONS)
                        ),
                        order=i,
                    )
                )
            logger.info(f"🗳️ 写入演示议题 {len(seed_data.DEMO_TOPICS)} 个")


def auto_init(store: PortalStore, hasher: PasswordHasher, *, seed_demo: bool = False) -> None:
    """
    自动初始化检查
    缺少超级管理员时创建；seed_demo=True 时补充演示数据
    """
    logger.info("🔍 检查初始化状态...")

    if not check_super_admin_exists(store):
        logger.info("👤 超级管理员不存在，正在创建...")
        create_super_admin(store, hasher)
    else:
        logger.info("✅ 超级管理员已存在")

    if seed_demo:
        seed_demo_data(store, hasher)

    logger.info("🎉 初始化检查完成")
