"""
Per-request registry of sessions.

Repeated lookups of the same session name during a request must return the
same :class:`.Session` instance, or changes made through one reference would
be lost when another is saved. The registry lives in the WSGI environ of the
request, so it is discarded along with the request.
"""

import logging
from typing import Dict, TYPE_CHECKING

from werkzeug.wrappers import Request, Response

from .domain import Session

if TYPE_CHECKING:   # pragma: no cover
    from .store import SessionStore

logger = logging.getLogger(__name__)

ENVIRON_KEY = 'kvsession.registry'


class Registry(object):
    """Caches the sessions loaded during a single request."""

    def __init__(self, request: Request) -> None:
        self.request = request
        self.sessions: Dict[str, Session] = {}

    def get(self, store: 'SessionStore', name: str) -> Session:
        """Get the session ``name``, loading it from ``store`` on first use."""
        session = self.sessions.get(name)
        if session is None:
            session = store.new(self.request, name)
            self.sessions[name] = session
        return session

    def discard(self, session: Session) -> None:
        """Stop tracking ``session``, e.g. after it has been deleted."""
        if self.sessions.get(session.name) is session:
            del self.sessions[session.name]

    def save(self, response: Response) -> None:
        """
        Save every session loaded during this request.

        Each session is saved by the store that created it. The first error
        is raised; sessions after it are not saved. New sessions with no
        values are skipped, so requests without a cookie that only read a
        session leave no record behind.
        """
        for name, session in self.sessions.items():
            if session.is_new and not session.values:
                logger.debug('Not saving empty new session %s', name)
                continue
            logger.debug('Saving session %s', name)
            session.store.save(self.request, response, session)


def get_registry(request: Request) -> Registry:
    """Get (or create) the :class:`Registry` for ``request``."""
    registry: Registry = request.environ.get(ENVIRON_KEY)
    if registry is None:
        registry = Registry(request)
        request.environ[ENVIRON_KEY] = registry
    return registry


def save_all(request: Request, response: Response) -> None:
    """Save every session registered on ``request``."""
    get_registry(request).save(response)
