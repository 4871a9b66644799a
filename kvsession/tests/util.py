"""Helpers for session store tests."""

from typing import Dict, Optional, Tuple
from unittest import mock

from werkzeug.wrappers import Request, Response

from ..backend import RedisBackend
from ..exceptions import RecordMissing

AUTH_KEY = b'a' * 32
ENCRYPTION_KEY = b'e' * 32
OLD_AUTH_KEY = b'o' * 32


def dict_backend() -> Tuple[mock.MagicMock, Dict[str, str]]:
    """Get a mock :class:`.RedisBackend` that keeps records in a dict."""
    data: Dict[str, str] = {}
    backend = mock.MagicMock(spec=RedisBackend)

    def _put(key: str, value: str) -> None:
        data[key] = value

    def _get(key: str) -> str:
        if key not in data:
            raise RecordMissing(f'No record for {key}')
        return data[key]

    def _delete(key: str) -> None:
        data.pop(key, None)

    backend.put.side_effect = _put
    backend.get.side_effect = _get
    backend.delete.side_effect = _delete
    return backend, data


def make_request(cookies: Optional[Dict[str, str]] = None) -> Request:
    """Build a request carrying ``cookies``."""
    headers = {}
    if cookies:
        headers['Cookie'] = '; '.join(f'{k}={v}' for k, v in cookies.items())
    return Request.from_values(headers=headers)


def get_set_cookie(response: Response, name: str) -> Optional[str]:
    """Get the raw ``Set-Cookie`` header for ``name``, if any."""
    for header in response.headers.getlist('Set-Cookie'):
        if header.startswith(f'{name}='):
            return header
    return None


def cookie_value(response: Response, name: str) -> Optional[str]:
    """Get the value set for cookie ``name`` on ``response``, if any."""
    header = get_set_cookie(response, name)
    if header is None:
        return None
    return header.split(';', 1)[0].split('=', 1)[1]
