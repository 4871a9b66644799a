"""
Session store backed by a distributed key-value store.

Session values are kept server-side, under a random session ID. The client
only receives that ID, in a cookie, after it has been signed (and optionally
encrypted) with the store's codecs. A cookie is useless without a matching
record and vice versa.

Reads fail open: a forged or stale cookie, a missing record, or a backend
outage all yield an empty new session, so that a session problem never
breaks page rendering. Writes fail closed: encoding and storage errors are
raised from :meth:`SessionStore.save`, and no cookie is set.
"""

import base64
import logging
import secrets
from typing import List, Optional

from werkzeug.wrappers import Request, Response

from . import backend as kv
from .codecs import Codec, DEFAULT_MAX_AGE, KeyPairLike, codecs_from_pairs, \
    decode_multi, encode_multi
from .cookies import set_cookie
from .domain import CookieOptions, Session
from .exceptions import ConfigurationError, CookieDecodeError, \
    RecordMissing, StorageReadError
from .registry import get_registry

logger = logging.getLogger(__name__)

ID_BYTES = 32
"""Random bytes in a session ID; 52 characters once base32-encoded."""


def generate_id() -> str:
    """Generate a new session ID: unpadded base32 of random bytes."""
    raw = secrets.token_bytes(ID_BYTES)
    return base64.b32encode(raw).decode('ascii').rstrip('=')


class SessionStore(object):
    """
    Stores sessions in a key-value backend, with the ID in a cookie.

    The store's :attr:`options` and :attr:`codecs` apply to every session
    it creates. Each session gets its own copy of the options.
    """

    def __init__(self, config: Optional[kv.BackendConfig],
                 path: str = '/', max_age: int = DEFAULT_MAX_AGE,
                 *key_pairs: KeyPairLike,
                 backend: Optional[kv.RedisBackend] = None) -> None:
        """
        Connect to the backend and set up codecs.

        Parameters
        ----------
        config : :class:`.BackendConfig`
            Backend connection parameters. Ignored if ``backend`` is passed.
        path : str
            Cookie path.
        max_age : int
            Cookie max-age, in seconds. See :class:`.CookieOptions`.
        key_pairs : :class:`.KeyPair`
            Key pairs, newest first. The first is used to encode; all are
            tried in order to decode.
        backend : :class:`.RedisBackend`
            An existing backend client to use instead of connecting.

        Raises
        ------
        :class:`ConfigurationError`
            If no key pairs are given, or a key is malformed.
        :class:`BackendConnectionError`
            If the backend is checked on connect and can't be reached.

        """
        if not key_pairs:
            raise ConfigurationError('At least one key pair is required')
        self.codecs: List[Codec] = codecs_from_pairs(*key_pairs)
        self.options = CookieOptions(path=path, max_age=max_age)
        if backend is None:
            if config is None:
                raise ConfigurationError('Need a backend or its config')
            backend = kv.connect(config)
        self.backend = backend

    def set_max_age(self, max_age: int) -> None:
        """
        Set the cookie max-age for new sessions.

        A positive value also becomes the maximum age of tokens accepted by
        the codecs.
        """
        self.options.max_age = max_age
        if max_age > 0:
            for codec in self.codecs:
                codec.set_max_age(max_age)

    def set_max_length(self, max_length: int) -> None:
        """Set the maximum length of encoded cookies and records."""
        for codec in self.codecs:
            codec.set_max_length(max_length)

    def get(self, request: Request, name: str) -> Session:
        """
        Get the session ``name`` for this request.

        The same instance is returned on every call during a request.
        """
        return get_registry(request).get(self, name)

    def new(self, request: Request, name: str) -> Session:
        """
        Load the session ``name`` from the request cookie, or start one.

        Never raises for a bad cookie or a backend failure: the session is
        returned empty with ``is_new`` set instead.
        """
        session = Session(name=name, store=self, options=self.options.copy())
        cookie = request.cookies.get(name)
        if cookie is None:
            return session

        try:
            session_id = decode_multi(name, cookie, self.codecs)
        except CookieDecodeError as e:
            logger.debug('Ignoring session cookie %s: %s', name, e)
            return session
        if not isinstance(session_id, str) or not session_id:
            logger.debug('Session cookie %s holds no session ID', name)
            return session

        try:
            values = self._load(name, session_id)
        except RecordMissing as e:
            logger.debug('No record for session %s: %s', name, e)
            return session
        except StorageReadError as e:
            logger.warning('Could not read session %s: %s', name, e)
            return session
        except CookieDecodeError as e:
            logger.warning('Could not decode session %s: %s', name, e)
            return session

        session.id = session_id
        session.values = values
        session.is_new = False
        return session

    def save(self, request: Request, response: Response,
             session: Session) -> None:
        """
        Write the session to the backend and set the cookie.

        Raises
        ------
        :class:`EncodingError`
            If the values or the ID could not be encoded.
        :class:`StorageWriteError`
            If the backend write failed. The cookie is not set.

        """
        if not session.id:
            session.id = generate_id()

        encoded = encode_multi(session.name, session.values, self.codecs)
        self.backend.put(session.id, encoded)

        cookie = encode_multi(session.name, session.id, self.codecs)
        set_cookie(response, session.name, cookie, session.options)
        logger.debug('Saved session %s', session.name)

    def delete(self, request: Request, response: Response,
               session: Session) -> None:
        """
        Delete the session record and expire the cookie.

        Raises
        ------
        :class:`StorageWriteError`
            If the record could not be deleted. The cookie is left alone.

        """
        if session.id:
            self.backend.delete(session.id)
        session.id = ''
        session.is_new = True
        get_registry(request).discard(session)
        session.values = {}
        session.options.max_age = -1
        set_cookie(response, session.name, '', session.options)
        logger.debug('Deleted session %s', session.name)

    def close(self) -> None:
        """Release the backend client. The store can't be used afterwards."""
        self.backend.close()

    def _load(self, name: str, session_id: str) -> dict:
        data = self.backend.get(session_id)
        values = decode_multi(name, data, self.codecs)
        if not isinstance(values, dict):
            raise CookieDecodeError('Session record is not a mapping')
        return values
