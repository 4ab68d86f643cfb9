# community_portal/store/portal_store.py
import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Type, TypeVar

from community_portal.db.enums import UserRole
from community_portal.logger import get_logger
from community_portal.models.base import PortalModel
from community_portal.models.proposal import Proposal
from community_portal.models.user import User
from community_portal.store.backends import KeyValueBackend

logger = get_logger(__name__)

USERS_KEY = "users"
PROPOSALS_KEY = "proposals"

M = TypeVar("M", bound=PortalModel)


@dataclass(frozen=True)
class PortalSnapshot:
    """Read-only view of both collections at one point in time."""

    users: Tuple[User, ...]
    proposals: Tuple[Proposal, ...]

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_phone(self, phone_number: str) -> Optional[User]:
        return next((u for u in self.users if u.phone_number == phone_number), None)

    def find_proposal(self, proposal_id: str) -> Optional[Proposal]:
        return next((p for p in self.proposals if p.id == proposal_id), None)

    def super_admin(self) -> Optional[User]:
        return next((u for u in self.users if u.role == UserRole.SUPER_ADMIN), None)


@dataclass
class PortalState:
    """
    Working copy handed out by PortalStore.transaction().
    Items are frozen models: replace list entries, never mutate them.
    """

    users: List[User]
    proposals: List[Proposal]

    def user_index(self, user_id: str) -> Optional[int]:
        return next((i for i, u in enumerate(self.users) if u.id == user_id), None)

    def proposal_index(self, proposal_id: str) -> Optional[int]:
        return next((i for i, p in enumerate(self.proposals) if p.id == proposal_id), None)

    def snapshot(self) -> PortalSnapshot:
        return PortalSnapshot(users=tuple(self.users), proposals=tuple(self.proposals))


class PortalStore:
    """
    Single owner of the users and proposals collections.

    - snapshot(): immutable view for queries
    - transaction(): one atomic command; commits and persists the changed
      collection(s) only if the block finishes without raising
    """

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend
        self._lock = threading.RLock()
        self._users: Tuple[User, ...] = self._load(USERS_KEY, User)
        self._proposals: Tuple[Proposal, ...] = self._load(PROPOSALS_KEY, Proposal)

    # ======================================================
    # 💾 Serialization
    # ======================================================

    def _load(self, key: str, model: Type[M]) -> Tuple[M, ...]:
        raw = self.backend.get(key)
        if not raw:
            return ()
        records = json.loads(raw)
        if not isinstance(records, list):
            raise ValueError(f"Persisted collection '{key}' is not a JSON array")
        return tuple(model.from_record(r) for r in records)

    def _persist(self, key: str, items: Tuple[PortalModel, ...]) -> None:
        payload = json.dumps([item.to_record() for item in items], ensure_ascii=False)
        self.backend.set(key, payload)
        logger.info(f"Persisted {len(items)} record(s) to '{key}'")

    # ======================================================
    # 🔒 Access
    # ======================================================

    def snapshot(self) -> PortalSnapshot:
        with self._lock:
            return PortalSnapshot(users=self._users, proposals=self._proposals)

    @contextmanager
    def transaction(self) -> Iterator[PortalState]:
        with self._lock:
            state = PortalState(users=list(self._users), proposals=list(self._proposals))
            yield state

            users = tuple(state.users)
            proposals = tuple(state.proposals)
            if users != self._users:
                self._persist(USERS_KEY, users)
                self._users = users
            if proposals != self._proposals:
                self._persist(PROPOSALS_KEY, proposals)
                self._proposals = proposals
