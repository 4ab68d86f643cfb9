# community_portal/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import os

from community_portal.logger import get_logger

logger = get_logger(__name__)

_engine = None
_SessionLocal = None


def build_engine(db_url: str):
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # 内存库必须共享同一连接，否则每个 session 都是一个空库
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url)


def configure(db_url: str):
    """重新绑定全局 engine（run.py / 测试使用）"""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    logger.info(f"Using database URL: {db_url}")
    _engine = build_engine(db_url)
    _SessionLocal = None
    return _engine


def get_engine():
    global _engine
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            raise RuntimeError("DATABASE_URL not set")
        configure(db_url)
    return _engine


def get_session():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine()
        )
    return _SessionLocal()
