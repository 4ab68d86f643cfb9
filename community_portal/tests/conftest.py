import itertools

import pytest

from community_portal.db import seed_data
from community_portal.db.auto_init import auto_init
from community_portal.services.auth_service import AuthService
from community_portal.services.password_hasher import PlaintextPasswordHasher
from community_portal.services.proposal_service import ProposalService
from community_portal.services.user_service import UserService
from community_portal.services.view_service import ViewService
from community_portal.store import MemoryKeyValueBackend, PortalStore


class FakeResult:
    def __init__(self, output):
        self.output = output


class FakeAgent:
    """Stands in for a pydantic-ai Agent: records prompts, returns or raises."""

    def __init__(self, output=None, error=None):
        self.output = output
        self.error = error
        self.prompts = []

    def run_sync(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return FakeResult(self.output)


@pytest.fixture
def hasher():
    return PlaintextPasswordHasher()


@pytest.fixture
def backend():
    return MemoryKeyValueBackend()


@pytest.fixture
def store(backend, hasher):
    """Fresh store per test, super admin seeded"""
    store = PortalStore(backend)
    auto_init(store, hasher)
    return store


@pytest.fixture
def admin_id():
    return seed_data.SUPER_ADMIN_ID


@pytest.fixture
def auth_service(store, hasher):
    return AuthService(store, hasher)


@pytest.fixture
def user_service(store, hasher):
    return UserService(store, hasher)


@pytest.fixture
def proposal_service(store):
    return ProposalService(store)


@pytest.fixture
def view_service(store):
    return ViewService(store)


@pytest.fixture
def register_owner(auth_service):
    phones = itertools.count(13800000000)

    def _register(building="1号楼", unit="101", name="业主", password="secret1"):
        return auth_service.register(
            name=name,
            phone_number=str(next(phones)),
            password=password,
            building=building,
            unit=unit,
        )

    return _register


@pytest.fixture
def verified_owner(register_owner, user_service, admin_id):
    def _verified(building="1号楼", unit="101", name="业主"):
        user = register_owner(building=building, unit=unit, name=name)
        return user_service.verify_user(operator_id=admin_id, user_id=user.id, approve=True)

    return _verified


@pytest.fixture
def proposal(proposal_service, admin_id):
    return proposal_service.create_proposal(
        operator_id=admin_id,
        title="地下车库增加新能源汽车充电桩",
        description="计划在B2层F区增设20个快充桩。",
        options=["A", "B"],
    )
