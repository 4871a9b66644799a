"""
Authenticated (and optionally encrypted) encoding of small values.

A :class:`Codec` binds a JSON-serializable value to a cookie name and an
issue time, signs the result as an HS256 JSON web token, and, if an
encryption key is configured, wraps the signed token in a compact JWE.

Codecs are used as an ordered chain: :func:`encode_multi` uses the first
codec that succeeds, and :func:`decode_multi` tries every codec in order.
Putting the newest key pair first and keeping older pairs behind it allows
keys to be rotated without invalidating cookies already in the wild.
"""

import json
import time
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, \
    Tuple, Union

import jwt
from jwcrypto import jwe, jwk
from jwcrypto.common import JWException, base64url_encode, json_encode

from .exceptions import ConfigurationError, CookieDecodeError, \
    EncodingError, MultiDecodeError

ALGORITHM = 'HS256'

DEFAULT_MAX_AGE = 86400 * 30
"""Tokens older than this many seconds are rejected (30 days)."""

DEFAULT_MAX_LENGTH = 4096
"""Encoded tokens longer than this are rejected; fits in a single cookie."""

CLOCK_SKEW = 60
"""Tolerance, in seconds, for tokens issued slightly in the future."""

# Content encryption algorithm by encryption key length, in bytes.
ENCRYPTION_ALGORITHMS = {16: 'A128GCM', 24: 'A192GCM', 32: 'A256GCM'}


class KeyPair(NamedTuple):
    """Secrets used by a single :class:`Codec`."""

    auth_key: bytes
    """Signs the token. Should be 32 or 64 random bytes."""

    encryption_key: Optional[bytes] = None
    """If set, must be 16, 24 or 32 bytes (AES-128, AES-192 or AES-256)."""


KeyPairLike = Union[KeyPair, Tuple[bytes, ...], bytes, str]


def _as_bytes(key: Union[bytes, str]) -> bytes:
    if isinstance(key, str):
        return key.encode('utf-8')
    return key


class Codec(object):
    """Encodes and decodes values with one key pair."""

    def __init__(self, auth_key: Union[bytes, str],
                 encryption_key: Optional[Union[bytes, str]] = None,
                 max_age: int = DEFAULT_MAX_AGE,
                 max_length: int = DEFAULT_MAX_LENGTH) -> None:
        """
        Validate the keys and set up the encryption key, if any.

        Parameters
        ----------
        auth_key : bytes
            Secret used to sign tokens.
        encryption_key : bytes or None
            Secret used to encrypt tokens. If ``None`` (or empty), tokens are
            signed but not encrypted.
        max_age : int
            Maximum age of a token, in seconds. ``0`` disables the check.
        max_length : int
            Maximum length of an encoded token. ``0`` disables the check.

        Raises
        ------
        :class:`ConfigurationError`
            If the auth key is empty or the encryption key has a bad length.

        """
        if not auth_key:
            raise ConfigurationError('Auth key must not be empty')
        self._auth_key = _as_bytes(auth_key)
        self._encryption_key: Optional[jwk.JWK] = None
        self._enc: Optional[str] = None
        if encryption_key:
            encryption_key = _as_bytes(encryption_key)
            try:
                self._enc = ENCRYPTION_ALGORITHMS[len(encryption_key)]
            except KeyError as e:
                raise ConfigurationError(
                    'Encryption key must be 16, 24 or 32 bytes, got'
                    f' {len(encryption_key)}'
                ) from e
            self._encryption_key = jwk.JWK(
                kty='oct', k=base64url_encode(encryption_key)
            )
        self.max_age = max_age
        self.max_length = max_length

    @property
    def encrypted(self) -> bool:
        """Whether this codec encrypts the tokens it produces."""
        return self._encryption_key is not None

    def set_max_age(self, max_age: int) -> None:
        """Set the maximum age of a token, in seconds (``0`` disables)."""
        self.max_age = max_age

    def set_max_length(self, max_length: int) -> None:
        """Set the maximum length of an encoded token (``0`` disables)."""
        self.max_length = max_length

    def encode(self, name: str, value: Any) -> str:
        """
        Encode ``value`` as a token bound to ``name``.

        Parameters
        ----------
        name : str
            Cookie (session) name. A token only decodes under the same name.
        value : object
            Anything that survives a :mod:`json` round trip unchanged.
            Tuples and dicts with non-string keys are rejected rather than
            silently converted.

        Returns
        -------
        str

        Raises
        ------
        :class:`EncodingError`
            If the value can't be serialized without change, or the
            token is too long.

        """
        try:
            if json.loads(json.dumps(value)) != value:
                raise EncodingError(
                    'Value would change in JSON (tuples, non-string keys)'
                )
        except (TypeError, ValueError) as e:
            raise EncodingError(f'Value is not serializable: {e}') from e

        claims = {'name': name, 'iat': int(time.time()), 'value': value}
        try:
            token = jwt.encode(claims, self._auth_key, algorithm=ALGORITHM)
        except (TypeError, ValueError) as e:
            raise EncodingError(f'Value is not serializable: {e}') from e

        if self._encryption_key is not None:
            try:
                envelope = jwe.JWE(
                    token.encode('utf-8'),
                    json_encode({'alg': 'dir', 'enc': self._enc})
                )
                envelope.add_recipient(self._encryption_key)
                token = envelope.serialize(compact=True)
            except JWException as e:
                raise EncodingError(f'Encryption failed: {e}') from e

        if self.max_length and len(token) > self.max_length:
            raise EncodingError(
                f'Encoded value is too long ({len(token)} > {self.max_length})'
            )
        return token

    def decode(self, name: str, token: str) -> Any:
        """
        Decode a token produced by :meth:`encode` with the same keys.

        Parameters
        ----------
        name : str
            The name that the token was bound to when it was encoded.
        token : str

        Returns
        -------
        object
            The original value.

        Raises
        ------
        :class:`CookieDecodeError`
            If the token is too long, was not produced with these keys, has
            been tampered with, was bound to another name, or has expired.

        """
        if self.max_length and len(token) > self.max_length:
            raise CookieDecodeError('Token is too long')

        if self._encryption_key is not None:
            try:
                envelope = jwe.JWE()
                envelope.deserialize(token, key=self._encryption_key)
                token = envelope.payload.decode('utf-8')
            except (JWException, ValueError, TypeError) as e:
                raise CookieDecodeError(f'Could not decrypt token: {e}') from e

        try:
            claims = jwt.decode(token, self._auth_key, algorithms=[ALGORITHM],
                                leeway=CLOCK_SKEW,
                                options={'require': ['iat']})
        except jwt.exceptions.PyJWTError as e:
            raise CookieDecodeError(f'Invalid token: {e}') from e

        if claims.get('name') != name:
            raise CookieDecodeError('Token was issued for another name')
        issued_at = claims['iat']
        now = time.time()
        if issued_at > now + CLOCK_SKEW:
            raise CookieDecodeError('Token was issued in the future')
        if self.max_age and issued_at < now - self.max_age:
            raise CookieDecodeError('Token has expired')
        if 'value' not in claims:
            raise CookieDecodeError('Token payload malformed')
        return claims['value']


def codecs_from_pairs(*pairs: KeyPairLike) -> List[Codec]:
    """
    Build codecs from key pairs, in priority order.

    Each pair may be a :class:`KeyPair`, a tuple of ``(auth_key,)`` or
    ``(auth_key, encryption_key)``, or a bare auth key.
    """
    codecs = []
    for pair in pairs:
        if isinstance(pair, (bytes, str)):
            pair = KeyPair(pair)
        elif not isinstance(pair, KeyPair):
            pair = KeyPair(*pair)
        codecs.append(Codec(pair.auth_key, pair.encryption_key))
    return codecs


def encode_multi(name: str, value: Any, codecs: Sequence[Codec]) -> str:
    """Encode ``value`` with the first codec that succeeds."""
    if not codecs:
        raise EncodingError('No codecs configured')
    errors: List[Exception] = []
    for codec in codecs:
        try:
            return codec.encode(name, value)
        except EncodingError as e:
            errors.append(e)
    raise errors[0]


def decode_multi(name: str, token: str, codecs: Iterable[Codec]) -> Any:
    """
    Decode ``token`` with each codec in turn, returning the first success.

    Raises
    ------
    :class:`MultiDecodeError`
        If there are no codecs, or none of them can decode the token.

    """
    errors: List[Exception] = []
    for codec in codecs:
        try:
            return codec.decode(name, token)
        except CookieDecodeError as e:
            errors.append(e)
    if not errors:
        raise MultiDecodeError('No codecs configured', errors)
    raise MultiDecodeError(
        f'Token could not be decoded by any of {len(errors)} codecs: '
        + '; '.join(str(e) for e in errors),
        errors
    )
