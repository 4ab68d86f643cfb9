# community_portal/routes/user.py
import json

from flask import Blueprint, request

from community_portal.errors import ValidationError
from community_portal.models.user import UserUpdate
from community_portal.routes.common import (
    current_user_id,
    json_body,
    ok,
    require_login,
    user_service,
)
from community_portal.schemas.dto import UserDTO

user_bp = Blueprint("user", __name__, url_prefix="/api/users")


def _users_json(users):
    return [UserDTO.from_model(u).to_json() for u in users]


@user_bp.route("", methods=["GET"])
def list_users():
    """用户列表（超级管理员）"""
    check = require_login()
    if check:
        return check

    users = user_service().list_users(operator_id=current_user_id())
    return ok(_users_json(users))


@user_bp.route("/orphaned", methods=["GET"])
def orphaned_users():
    """所在楼栋没有管家的待审核业主（超级管理员）"""
    check = require_login()
    if check:
        return check

    users = user_service().orphaned_pending_users(operator_id=current_user_id())
    return ok(_users_json(users))


@user_bp.route("/roster", methods=["GET"])
def building_roster():
    """楼栋管家：本楼待审核 / 已认证住户"""
    check = require_login()
    if check:
        return check

    roster = user_service().building_roster(operator_id=current_user_id())
    return ok({
        "building": roster.building,
        "pending": _users_json(roster.pending),
        "verified": _users_json(roster.verified),
    })


@user_bp.route("/<user_id>", methods=["PATCH"])
def edit_user(user_id):
    """编辑用户资料（超级管理员）"""
    check = require_login()
    if check:
        return check

    updates = UserUpdate.model_validate(json_body())
    user = user_service().edit_user(
        operator_id=current_user_id(),
        user_id=user_id,
        updates=updates,
    )
    return ok(UserDTO.from_model(user).to_json())


@user_bp.route("/<user_id>", methods=["DELETE"])
def remove_user(user_id):
    """删除用户，不可恢复"""
    check = require_login()
    if check:
        return check

    user_service().remove_user(operator_id=current_user_id(), user_id=user_id)
    return ok()


@user_bp.route("/<user_id>/verify", methods=["POST"])
def verify_user(user_id):
    """审核通过 / 驳回"""
    check = require_login()
    if check:
        return check

    approve = json_body().get("approve")
    if not isinstance(approve, bool):
        raise ValidationError("approve must be true or false")

    user = user_service().verify_user(
        operator_id=current_user_id(),
        user_id=user_id,
        approve=approve,
    )
    return ok(UserDTO.from_model(user).to_json())


@user_bp.route("/<user_id>/promote", methods=["POST"])
def promote_user(user_id):
    """设为楼栋管家"""
    check = require_login()
    if check:
        return check

    user = user_service().promote(
        operator_id=current_user_id(),
        user_id=user_id,
        managed_building=str(json_body().get("managedBuilding", "")),
    )
    return ok(UserDTO.from_model(user).to_json())


@user_bp.route("/<user_id>/demote", methods=["POST"])
def demote_user(user_id):
    """撤销楼栋管家"""
    check = require_login()
    if check:
        return check

    user = user_service().demote(operator_id=current_user_id(), user_id=user_id)
    return ok(UserDTO.from_model(user).to_json())


@user_bp.route("/import", methods=["POST"])
def import_users():
    """批量导入：上传 JSON 文件（file 字段）或直接提交 JSON 数组"""
    check = require_login()
    if check:
        return check

    upload = request.files.get("file")
    if upload is not None:
        try:
            records = json.loads(upload.read().decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"Invalid JSON file: {e}")
    else:
        records = request.get_json(silent=True)

    inserted = user_service().import_users(operator_id=current_user_id(), records=records)
    return ok({"inserted": inserted})


@user_bp.route("/export", methods=["GET"])
def export_users():
    """导出全部用户（不含超级管理员）为 JSON 文件"""
    check = require_login()
    if check:
        return check

    service = user_service()
    records = service.export_users(operator_id=current_user_id())
    filename = service.export_filename()
    payload = json.dumps(records, ensure_ascii=False, indent=2)
    return (
        payload,
        200,
        {
            "Content-Type": "application/json; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
