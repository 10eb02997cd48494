"""
Process-local registry of open scan sessions.

Sessions are ephemeral and never persisted. They live in the memory of the
worker that opened them, so deployments serving the scanner endpoints run a
single worker process or route each operator to the same worker.
"""

import logging
import threading
import uuid
from typing import Dict, List

from apps.accounts.models import User

from .exceptions import SessionNotFoundError
from .scan_session import ScanSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Open sessions keyed by id; each session belongs to one operator."""

    def __init__(self):
        self._sessions: Dict[uuid.UUID, ScanSession] = {}
        self._lock = threading.Lock()

    def open(self, *, operator: User, mode: str, group_id=None, amount=None) -> ScanSession:
        session = ScanSession(
            mode=mode,
            operator=operator,
            group_id=group_id,
            amount=amount,
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Operator %s opened %s session %s", operator.id, session.mode, session.id)
        return session

    def get(self, *, session_id, operator: User) -> ScanSession:
        """
        Raises:
            SessionNotFoundError: If the session is unknown or owned by another operator
        """
        try:
            key = uuid.UUID(str(session_id))
        except ValueError:
            raise SessionNotFoundError(f"Session {session_id} not found")

        with self._lock:
            session = self._sessions.get(key)

        if session is None or session.operator.pk != operator.pk:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def close(self, *, session_id, operator: User) -> None:
        session = self.get(session_id=session_id, operator=operator)
        with self._lock:
            self._sessions.pop(session.id, None)
        logger.info("Operator %s closed session %s", operator.id, session.id)

    def for_operator(self, operator: User) -> List[ScanSession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.operator.pk == operator.pk]

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


registry = SessionRegistry()


def open_session(*, operator: User, mode: str, group_id=None, amount=None) -> ScanSession:
    return registry.open(operator=operator, mode=mode, group_id=group_id, amount=amount)


def get_session(*, session_id, operator: User) -> ScanSession:
    return registry.get(session_id=session_id, operator=operator)


def close_session(*, session_id, operator: User) -> None:
    registry.close(session_id=session_id, operator=operator)


def list_sessions(*, operator: User) -> List[ScanSession]:
    return registry.for_operator(operator)
