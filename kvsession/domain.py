"""Session and cookie option types."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:   # pragma: no cover
    from werkzeug.wrappers import Request, Response
    from .store import SessionStore


@dataclass
class CookieOptions:
    """Attributes of the session cookie."""

    path: str = '/'

    max_age: int = 0
    """
    Cookie lifetime in seconds.

    ``0`` makes a browser-session cookie, a negative value deletes the
    cookie immediately, and a positive value expires it after that many
    seconds. This governs the cookie only; records in the backend do not
    expire.
    """

    domain: Optional[str] = None
    secure: bool = False
    http_only: bool = True
    same_site: Optional[str] = 'Lax'

    def copy(self) -> 'CookieOptions':
        """Get an independent copy of these options."""
        return replace(self)


@dataclass
class Session:
    """
    A named session, as loaded from (or about to be saved to) a store.

    ``id`` is empty until the session is first saved, and does not change
    after that. ``values`` may be mutated freely between load and save.
    """

    name: str
    store: 'SessionStore' = field(repr=False)
    options: CookieOptions = field(default_factory=CookieOptions)
    values: Dict[str, Any] = field(default_factory=dict)
    id: str = ''
    is_new: bool = True

    def save(self, request: 'Request', response: 'Response') -> None:
        """Save this session with the store that created it."""
        self.store.save(request, response, self)
