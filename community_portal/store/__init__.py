from community_portal.store.backends import (
    KeyValueBackend,
    MemoryKeyValueBackend,
    SqlKeyValueBackend,
)
from community_portal.store.portal_store import (
    PortalSnapshot,
    PortalState,
    PortalStore,
    PROPOSALS_KEY,
    USERS_KEY,
)

__all__ = [
    "KeyValueBackend",
    "MemoryKeyValueBackend",
    "SqlKeyValueBackend",
    "PortalSnapshot",
    "PortalState",
    "PortalStore",
    "PROPOSALS_KEY",
    "USERS_KEY",
]
