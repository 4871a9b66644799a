"""
Server-side sessions in a distributed key-value store.

Session values are stored in Redis under a random session ID. The client
only holds that ID, signed (and optionally encrypted) in a cookie. See
:mod:`.store`.
"""

from .backend import BackendConfig, RedisBackend
from .codecs import Codec, KeyPair
from .domain import CookieOptions, Session
from .exceptions import BackendConnectionError, ConfigurationError, \
    CookieDecodeError, EncodingError, RecordMissing, SessionStoreError, \
    StorageReadError, StorageWriteError
from .store import SessionStore, generate_id
