# blooddrive/services/locks.py
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Optional

from blooddrive.config import settings
from blooddrive.services.errors import Conflict

logger = logging.getLogger(__name__)


class EntityLockRegistry:
    """
    Per-entity locks keyed by (kind, id).

    Two lifecycle calls on the same appointment or blood unit run one after the
    other; calls on different entities never share a lock. Locks are held in a
    weak map so entries disappear once no caller holds them.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _lock_for(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, kind: str, entity_id, timeout: Optional[float] = None):
        if timeout is None:
            timeout = settings.LOCK_TIMEOUT_SECONDS
        key = (kind, str(entity_id))
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            logger.warning(f"Lock timeout on {kind} {entity_id} after {timeout}s")
            raise Conflict(f"{kind} {entity_id} is being modified, retry shortly", retry_after=timeout)
        try:
            yield
        finally:
            lock.release()


entity_locks = EntityLockRegistry()
