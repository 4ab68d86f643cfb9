# community_portal/routes/auth.py
from flask import Blueprint, session

from community_portal.errors import NotFoundError
from community_portal.routes.common import (
    auth_service,
    current_user_id,
    get_store,
    json_body,
    ok,
    require_login,
)
from community_portal.schemas.dto import UserDTO

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/login", methods=["POST"])
def login():
    """手机号 + 密码登录"""
    body = json_body()
    user = auth_service().login(
        phone_number=str(body.get("phoneNumber", "")).strip(),
        password=str(body.get("password", "")),
    )

    # 登录成功，设置 session
    session["user_id"] = user.id
    session["user_role"] = user.role.value
    return ok(UserDTO.from_model(user).to_json())


@auth_bp.route("/register", methods=["POST"])
def register():
    """业主自助注册，注册后等待楼栋管家审核"""
    body = json_body()
    user = auth_service().register(
        name=body.get("name", ""),
        phone_number=body.get("phoneNumber", ""),
        password=body.get("password", ""),
        building=body.get("building", ""),
        unit=body.get("unit", ""),
    )
    return ok(UserDTO.from_model(user).to_json(), 201)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """登出"""
    session.clear()
    return ok()


@auth_bp.route("/me", methods=["GET"])
def me():
    check = require_login()
    if check:
        return check

    user = get_store().snapshot().find_user(current_user_id())
    if not user:
        # 账号已被删除
        session.clear()
        raise NotFoundError("User not found")
    return ok(UserDTO.from_model(user).to_json())


@auth_bp.route("/password", methods=["POST"])
def change_password():
    """修改密码；超级管理员可通过 userId 重置他人密码"""
    check = require_login()
    if check:
        return check

    body = json_body()
    operator_id = current_user_id()
    auth_service().change_password(
        operator_id=operator_id,
        user_id=body.get("userId") or operator_id,
        new_password=str(body.get("newPassword", "")),
    )
    return ok()
