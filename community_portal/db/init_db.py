from community_portal.db.session import get_engine
from community_portal.db.base import Base
# 导入所有表，保证 metadata 完整
from community_portal.models.kv_entry import KeyValueEntry  # noqa: F401


def init_db(engine=None):
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
