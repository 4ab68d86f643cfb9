import json
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from community_portal.db import seed_data
from community_portal.db.enums import UserRole, UserStatus
from community_portal.errors import (
    DuplicatePhoneError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from community_portal.models.user import UserUpdate
from community_portal.services.user_service import UserService
from community_portal.store import MemoryKeyValueBackend, PortalStore
from community_portal.db.auto_init import auto_init


def _orphan_ids(user_service, admin_id):
    return {u.id for u in user_service.orphaned_pending_users(operator_id=admin_id)}


# ======================================================
# ✅ Verification
# ======================================================

def test_building_admin_verifies_own_building(user_service, register_owner, verified_owner, admin_id):
    steward = verified_owner(building="1号楼")
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="1号楼")
    pending = register_owner(building="1号楼")

    updated = user_service.verify_user(operator_id=steward.id, user_id=pending.id, approve=True)

    assert updated.status == UserStatus.VERIFIED


def test_building_admin_can_manage_other_building_than_residence(user_service, register_owner, verified_owner, admin_id):
    steward = verified_owner(building="1号楼")
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="2号楼")

    own_building = register_owner(building="1号楼")
    managed = register_owner(building="2号楼")

    with pytest.raises(PermissionDeniedError):
        user_service.verify_user(operator_id=steward.id, user_id=own_building.id, approve=True)
    rejected = user_service.verify_user(operator_id=steward.id, user_id=managed.id, approve=False)
    assert rejected.status == UserStatus.REJECTED


def test_owner_cannot_verify(user_service, register_owner, verified_owner):
    owner = verified_owner()
    pending = register_owner()
    with pytest.raises(PermissionDeniedError):
        user_service.verify_user(operator_id=owner.id, user_id=pending.id, approve=True)


def test_verify_non_pending_user_is_rejected(user_service, register_owner, admin_id):
    user = register_owner()
    user_service.verify_user(operator_id=admin_id, user_id=user.id, approve=False)

    with pytest.raises(InvalidStateError):
        user_service.verify_user(operator_id=admin_id, user_id=user.id, approve=True)
    assert user_service.get_user_by_id(user.id).status == UserStatus.REJECTED


def test_verify_missing_user(user_service, admin_id):
    with pytest.raises(NotFoundError):
        user_service.verify_user(operator_id=admin_id, user_id="nope", approve=True)


# ======================================================
# 🏚️ Orphaned pending users
# ======================================================

def test_orphaned_set_follows_admin_assignment(user_service, register_owner, verified_owner, admin_id):
    u1 = verified_owner(building="1号楼")
    u2 = register_owner(building="3号楼")
    assert u2.id in _orphan_ids(user_service, admin_id)

    user_service.promote(operator_id=admin_id, user_id=u1.id, managed_building="3号楼")
    assert u2.id not in _orphan_ids(user_service, admin_id)

    user_service.demote(operator_id=admin_id, user_id=u1.id)
    assert u2.id in _orphan_ids(user_service, admin_id)


def test_orphaned_set_with_two_admins_for_one_building(user_service, register_owner, verified_owner, admin_id):
    a1 = verified_owner()
    a2 = verified_owner()
    pending = register_owner(building="3号楼")
    user_service.promote(operator_id=admin_id, user_id=a1.id, managed_building="3号楼")
    user_service.promote(operator_id=admin_id, user_id=a2.id, managed_building="3号楼")

    user_service.demote(operator_id=admin_id, user_id=a1.id)
    assert pending.id not in _orphan_ids(user_service, admin_id)

    user_service.demote(operator_id=admin_id, user_id=a2.id)
    assert pending.id in _orphan_ids(user_service, admin_id)


def test_orphaned_view_excludes_verified_and_admins(user_service, register_owner, verified_owner, admin_id):
    verified = verified_owner(building="5号楼")
    pending = register_owner(building="5号楼")
    orphans = _orphan_ids(user_service, admin_id)

    assert pending.id in orphans
    assert verified.id not in orphans
    assert admin_id not in orphans


def test_orphaned_view_is_super_admin_only(user_service, verified_owner):
    owner = verified_owner()
    with pytest.raises(PermissionDeniedError):
        user_service.orphaned_pending_users(operator_id=owner.id)


def test_building_roster(user_service, register_owner, verified_owner, admin_id):
    steward = verified_owner(building="2号楼")
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="2号楼")
    pending = register_owner(building="2号楼")
    verified = verified_owner(building="2号楼")
    register_owner(building="1号楼")

    roster = user_service.building_roster(operator_id=steward.id)

    assert roster.building == "2号楼"
    assert [u.id for u in roster.pending] == [pending.id]
    assert [u.id for u in roster.verified] == [verified.id]


# ======================================================
# 🛡️ Roles
# ======================================================

def test_promote_and_demote(user_service, verified_owner, admin_id):
    owner = verified_owner(building="1号楼")

    promoted = user_service.promote(operator_id=admin_id, user_id=owner.id, managed_building="3号楼")
    assert promoted.role == UserRole.BUILDING_ADMIN
    assert promoted.managed_building == "3号楼"
    assert promoted.building == "1号楼"

    demoted = user_service.demote(operator_id=admin_id, user_id=owner.id)
    assert demoted.role == UserRole.OWNER
    assert demoted.managed_building is None


def test_only_super_admin_promotes(user_service, verified_owner):
    a = verified_owner()
    b = verified_owner()
    with pytest.raises(PermissionDeniedError):
        user_service.promote(operator_id=a.id, user_id=b.id, managed_building="1号楼")


def test_super_admin_role_is_fixed(user_service, admin_id):
    with pytest.raises(PermissionDeniedError):
        user_service.promote(operator_id=admin_id, user_id=admin_id, managed_building="1号楼")
    with pytest.raises(PermissionDeniedError):
        user_service.demote(operator_id=admin_id, user_id=admin_id)


def test_promote_requires_building(user_service, verified_owner, admin_id):
    owner = verified_owner()
    with pytest.raises(ValidationError):
        user_service.promote(operator_id=admin_id, user_id=owner.id, managed_building=" ")


# ======================================================
# ✏️ Maintenance
# ======================================================

def test_super_admin_removes_anyone_but_itself(user_service, register_owner, admin_id):
    user = register_owner()
    user_service.remove_user(operator_id=admin_id, user_id=user.id)
    assert user_service.get_user_by_id(user.id) is None

    with pytest.raises(PermissionDeniedError):
        user_service.remove_user(operator_id=admin_id, user_id=admin_id)


def test_building_admin_removal_scope(user_service, register_owner, verified_owner, admin_id):
    steward = verified_owner(building="1号楼")
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="1号楼")
    inside = register_owner(building="1号楼")
    outside = register_owner(building="2号楼")
    rejected = register_owner(building="1号楼")
    user_service.verify_user(operator_id=admin_id, user_id=rejected.id, approve=False)

    user_service.remove_user(operator_id=steward.id, user_id=inside.id)
    assert user_service.get_user_by_id(inside.id) is None

    with pytest.raises(PermissionDeniedError):
        user_service.remove_user(operator_id=steward.id, user_id=outside.id)
    with pytest.raises(PermissionDeniedError):
        user_service.remove_user(operator_id=steward.id, user_id=rejected.id)
    with pytest.raises(PermissionDeniedError):
        user_service.remove_user(operator_id=steward.id, user_id=admin_id)


def test_edit_user_partial_update(user_service, register_owner, admin_id):
    user = register_owner(building="1号楼", unit="305", name="张伟")

    updated = user_service.edit_user(
        operator_id=admin_id,
        user_id=user.id,
        updates=UserUpdate(unit="306"),
    )

    assert updated.unit == "306"
    assert updated.name == "张伟"
    assert updated.building == "1号楼"
    assert updated.phone_number == user.phone_number
    assert updated.status == user.status


def test_edit_user_enforces_phone_uniqueness(user_service, register_owner, admin_id):
    a = register_owner()
    b = register_owner()

    with pytest.raises(DuplicatePhoneError):
        user_service.edit_user(
            operator_id=admin_id,
            user_id=b.id,
            updates=UserUpdate(phone_number=a.phone_number),
        )
    # 改成自己当前的号码不算冲突
    same = user_service.edit_user(
        operator_id=admin_id,
        user_id=b.id,
        updates=UserUpdate(phone_number=b.phone_number),
    )
    assert same.phone_number == b.phone_number


def test_edit_user_accepts_wire_names():
    updates = UserUpdate.model_validate({"phoneNumber": "13900000099", "name": "新名字"})
    assert updates.changes() == {"phone_number": "13900000099", "name": "新名字"}


def test_edit_user_super_admin_only(user_service, verified_owner):
    owner = verified_owner()
    with pytest.raises(PermissionDeniedError):
        user_service.edit_user(operator_id=owner.id, user_id=owner.id, updates=UserUpdate(name="x"))


# ======================================================
# 📦 Import / Export
# ======================================================

def test_import_users_skips_duplicates_and_missing_phone(user_service, register_owner, store, admin_id):
    existing = register_owner()
    records = [
        {"name": "甲", "phoneNumber": "13700000001", "building": "5号楼", "unit": "501"},
        {"name": "重复", "phoneNumber": existing.phone_number},
        {"name": "批内重复", "phoneNumber": "13700000001"},
        {"name": "无手机号"},
        {"phoneNumber": "13700000002"},
        "not-a-record",
    ]

    inserted = user_service.import_users(operator_id=admin_id, records=records)

    assert inserted == 2
    snapshot = store.snapshot()
    first = snapshot.find_user_by_phone("13700000001")
    assert first.name == "甲"
    assert first.role == UserRole.OWNER
    assert first.status == UserStatus.VERIFIED
    assert first.id.startswith("u-imported-")

    defaults = snapshot.find_user_by_phone("13700000002")
    assert defaults.name == "未命名"
    assert defaults.building == "未知"
    assert defaults.unit == "未知"
    assert defaults.password == "123456"

    phones = [u.phone_number for u in snapshot.users]
    assert len(phones) == len(set(phones))


def test_import_requires_array(user_service, admin_id):
    with pytest.raises(ValidationError):
        user_service.import_users(operator_id=admin_id, records={"phoneNumber": "1"})


def test_export_excludes_super_admin(user_service, register_owner, admin_id):
    register_owner(name="张伟")
    records = user_service.export_users(operator_id=admin_id)

    assert [r["name"] for r in records] == ["张伟"]
    assert set(records[0]) == {
        "id", "name", "role", "building", "unit", "status",
        "phoneNumber", "password", "managedBuilding",
    }
    assert all(r["role"] != "SUPER_ADMIN" for r in records)


def test_export_file_can_be_imported_elsewhere(user_service, register_owner, hasher, admin_id):
    register_owner(name="张伟")
    register_owner(name="王芳")
    payload = json.dumps(user_service.export_users(operator_id=admin_id), ensure_ascii=False)

    other_store = PortalStore(MemoryKeyValueBackend())
    auto_init(other_store, hasher)
    other = UserService(other_store, hasher)

    assert other.import_users(operator_id=seed_data.SUPER_ADMIN_ID, records=json.loads(payload)) == 2
    assert other.import_users(operator_id=seed_data.SUPER_ADMIN_ID, records=json.loads(payload)) == 0


def test_export_filename_embeds_date():
    assert UserService.export_filename(date(2024, 5, 1)) == "community_users_export_2024-05-01.json"


def test_building_admin_cannot_verify_other_admins(user_service, register_owner, verified_owner, admin_id):
    steward = verified_owner(building="1号楼")
    user_service.promote(operator_id=admin_id, user_id=steward.id, managed_building="1号楼")
    # 住在 1号楼、但管理 2号楼 的待审核管家
    other = register_owner(building="1号楼")
    user_service.promote(operator_id=admin_id, user_id=other.id, managed_building="2号楼")

    with pytest.raises(PermissionDeniedError):
        user_service.verify_user(operator_id=steward.id, user_id=other.id, approve=False)

    current = user_service.get_user_by_id(other.id)
    assert current.role == UserRole.BUILDING_ADMIN
    assert current.status == UserStatus.PENDING


def test_avatar_is_read_only(user_service, register_owner, store, admin_id):
    user = register_owner()
    with store.transaction() as state:
        idx = state.user_index(user.id)
        state.users[idx] = state.users[idx].model_copy(update={"avatar": "https://img.example/a.png"})

    with pytest.raises(PydanticValidationError):
        UserUpdate.model_validate({"avatar": "https://img.example/b.png"})

    updated = user_service.edit_user(operator_id=admin_id, user_id=user.id, updates=UserUpdate(unit="202"))
    assert updated.avatar == "https://img.example/a.png"
