"""Flask configuration for the session store, read from the environment."""

import os
from typing import List

from .codecs import KeyPair
from .exceptions import ConfigurationError

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_CLUSTER = os.environ.get('REDIS_CLUSTER', '0')
REDIS_PASSWORD = os.environ.get('REDIS_PASSWORD')
REDIS_CHECK_CONNECTION = os.environ.get('REDIS_CHECK_CONNECTION', '0')
"""If ``1``, ping the backend when the store is created."""

KVSESSION_COOKIE_NAME = os.environ.get('KVSESSION_COOKIE_NAME', 'kvsession')
KVSESSION_COOKIE_PATH = os.environ.get('KVSESSION_COOKIE_PATH', '/')
KVSESSION_COOKIE_DOMAIN = os.environ.get('KVSESSION_COOKIE_DOMAIN')
KVSESSION_COOKIE_SECURE = os.environ.get('KVSESSION_COOKIE_SECURE', '0')
KVSESSION_COOKIE_HTTPONLY = os.environ.get('KVSESSION_COOKIE_HTTPONLY', '1')
KVSESSION_COOKIE_SAMESITE = os.environ.get('KVSESSION_COOKIE_SAMESITE', 'Lax')
KVSESSION_MAX_AGE = os.environ.get('KVSESSION_MAX_AGE', str(86400 * 30))

KVSESSION_KEY_PAIRS = os.environ.get('KVSESSION_KEY_PAIRS')
"""
Comma-separated key pairs, newest first; see :func:`parse_key_pairs`.

For example ``newauth:newencryptionkey0,oldauth``.
"""

KVSESSION_AUTO_SAVE = os.environ.get('KVSESSION_AUTO_SAVE', '1')
"""If ``1``, save every session loaded during a request after it ends."""

KVSESSION_JSON_LOGGING = os.environ.get('KVSESSION_JSON_LOGGING', '0')


def parse_key_pairs(raw: str) -> List[KeyPair]:
    """
    Parse key pairs from a string like ``auth1:enc1,auth2``.

    Pairs are separated by commas; the auth and encryption keys of a pair
    by a colon. The encryption key is optional. Keys are UTF-8 encoded.

    Raises
    ------
    :class:`ConfigurationError`
        If there are no pairs, or a pair is malformed.

    """
    pairs = []
    for chunk in raw.split(','):
        chunk = chunk.strip()
        if not chunk:
            continue
        parts = chunk.split(':')
        if len(parts) > 2 or not parts[0]:
            raise ConfigurationError(f'Malformed key pair: {chunk!r}')
        auth_key = parts[0].encode('utf-8')
        encryption_key = parts[1].encode('utf-8') \
            if len(parts) == 2 and parts[1] else None
        pairs.append(KeyPair(auth_key, encryption_key))
    if not pairs:
        raise ConfigurationError('No key pairs configured')
    return pairs
