"""Single signed-in identity. Role is taken as given at login; nothing is verified."""

import logging
from typing import Optional, Union

from database import SESSION_KEY, Store
from schemas import Forbidden, Identity, NeedsAuth, Role

logger = logging.getLogger(__name__)


def authorize_admin(identity: Optional[Identity]) -> Optional[Union[NeedsAuth, Forbidden]]:
    """Return the failure that blocks an admin-only operation, or None when allowed."""
    if identity is None:
        return NeedsAuth()
    if identity.role != Role.admin:
        return Forbidden()
    return None


class SessionGate:
    def __init__(self, store: Store, current: Optional[Identity] = None):
        self.store = store
        self.current = current

    @classmethod
    def restore(cls, store: Store) -> "SessionGate":
        return cls(store, store.load(SESSION_KEY, None, Optional[Identity]))

    @property
    def is_admin(self) -> bool:
        return authorize_admin(self.current) is None

    def login(self, identity: Identity) -> Identity:
        self.current = identity
        self.store.save(SESSION_KEY, identity)
        logger.info("Signed in %s as %s", identity.email, identity.role.value)
        return identity

    def logout(self) -> None:
        self.current = None
        self.store.save(SESSION_KEY, None)
