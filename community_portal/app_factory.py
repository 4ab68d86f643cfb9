'''“组装 Flask App 的工厂”（不启动，不产生行为副作用）
负责注入配置、初始化 session、挂载 PortalStore 与各个 service 依赖、注册蓝图和 error handler
不负责启动服务（不调用 app.run()），会被 run.py / 单元测试调用'''
# community_portal/app_factory.py
import os
from typing import Optional

from flask import Flask
from flask_session import Session
from pydantic import ValidationError as PydanticValidationError

from community_portal.config import config_by_name
from community_portal.db.auto_init import auto_init, open_store
from community_portal.errors import ErrorType, PortalError
from community_portal.logger import get_logger
from community_portal.services.password_hasher import build_password_hasher
from community_portal.services.suggestion_service import SuggestionService
from community_portal.store import PortalStore

logger = get_logger(__name__)

# 业务错误 -> HTTP 状态码
ERROR_STATUS = {
    ErrorType.AUTH_FAILED: 401,
    ErrorType.AUTH_REQUIRED: 401,
    ErrorType.PERMISSION_DENIED: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.DUPLICATE_PHONE: 409,
    ErrorType.INVALID_STATE: 409,
    ErrorType.VALIDATION_ERROR: 400,
}


def create_app(
    config_name: str = "development",
    *,
    store: Optional[PortalStore] = None,
    suggestion_service: Optional[SuggestionService] = None,
    overrides: Optional[dict] = None,
):
    """应用工厂函数"""
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if overrides:
        app.config.update(overrides)

    # Session 文件存储目录
    os.makedirs(app.config["SESSION_FILE_DIR"], exist_ok=True)
    Session(app)

    hasher = build_password_hasher(app.config["PASSWORD_SCHEME"])
    if store is None:
        store = open_store(app.config["DATABASE_URL"])
    auto_init(store, hasher, seed_demo=app.config["SEED_DEMO_DATA"])

    app.extensions["portal_store"] = store
    app.extensions["password_hasher"] = hasher
    app.extensions["suggestion_service"] = suggestion_service or SuggestionService(
        app.config["SUGGESTION_MODEL"]
    )

    # 注册蓝图
    from community_portal.routes.auth import auth_bp
    from community_portal.routes.public import public_bp
    from community_portal.routes.user import user_bp
    from community_portal.routes.proposal import proposal_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(proposal_bp)

    # 注册错误处理
    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """注册错误处理器：业务错误一律以结果值返回"""
    from community_portal.routes.common import fail

    @app.errorhandler(PortalError)
    def portal_error(error: PortalError):
        return fail(error.error_type, error.message, ERROR_STATUS.get(error.error_type, 400))

    @app.errorhandler(PydanticValidationError)
    def request_validation_error(error: PydanticValidationError):
        return fail(ErrorType.VALIDATION_ERROR, str(error), 400)

    @app.errorhandler(404)
    def not_found(error):
        return fail(ErrorType.NOT_FOUND, "Resource not found", 404)

    @app.errorhandler(500)
    def internal_error(error):
        logger.exception("Unhandled error")
        return fail(ErrorType.SYSTEM_ERROR, "Internal server error", 500)
