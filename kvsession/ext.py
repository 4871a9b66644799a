"""
Flask integration for the session store.

Intended for use in a Flask application factory, for example:

.. code-block:: python

   from flask import Flask
   from kvsession.ext import KVSession, get_session


   def create_web_app() -> Flask:
       app = Flask('someapp')
       app.config.from_pyfile('config.py')
       KVSession(app)
       return app


   @app.route('/')
   def index():
       session = get_session()
       session.values['visits'] = session.values.get('visits', 0) + 1
       ...

"""

import logging
from typing import Any, Optional

from flask import Flask, Response, current_app, request

from . import config as defaults
from .app_logging import setup_logger
from .backend import BackendConfig, RedisBackend
from .config import parse_key_pairs
from .domain import Session
from .exceptions import ConfigurationError, SessionStoreError
from .registry import ENVIRON_KEY, save_all
from .store import SessionStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'kvsession'

CONFIG_KEYS = [
    'REDIS_HOST', 'REDIS_PORT', 'REDIS_DATABASE', 'REDIS_CLUSTER',
    'REDIS_PASSWORD', 'REDIS_CHECK_CONNECTION',
    'KVSESSION_COOKIE_NAME', 'KVSESSION_COOKIE_PATH',
    'KVSESSION_COOKIE_DOMAIN', 'KVSESSION_COOKIE_SECURE',
    'KVSESSION_COOKIE_HTTPONLY', 'KVSESSION_COOKIE_SAMESITE',
    'KVSESSION_MAX_AGE', 'KVSESSION_KEY_PAIRS',
    'KVSESSION_AUTO_SAVE', 'KVSESSION_JSON_LOGGING',
]


def _flag(value: Any) -> bool:
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class KVSession(object):
    """Attaches a :class:`.SessionStore` to a Flask app."""

    def __init__(self, app: Optional[Flask] = None,
                 backend: Optional[RedisBackend] = None) -> None:
        """
        Initialize ``app``, if given.

        Parameters
        ----------
        app : :class:`Flask`
        backend : :class:`.RedisBackend`
            Use this backend client rather than connecting with the
            ``REDIS_*`` parameters.

        """
        self.backend = backend
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Set config defaults, build the store, and register request hooks.

        Raises
        ------
        :class:`ConfigurationError`
            If ``KVSESSION_KEY_PAIRS`` is not set or malformed.

        """
        for key in CONFIG_KEYS:
            app.config.setdefault(key, getattr(defaults, key))

        if _flag(app.config['KVSESSION_JSON_LOGGING']):
            setup_logger()

        store = self.create_store(app)
        app.extensions[EXTENSION_KEY] = store
        if _flag(app.config['KVSESSION_AUTO_SAVE']):
            app.after_request(save_sessions)

    def create_store(self, app: Flask) -> SessionStore:
        """Build a :class:`.SessionStore` from the app config."""
        config = app.config
        key_pairs = config['KVSESSION_KEY_PAIRS']
        if not key_pairs:
            raise ConfigurationError('KVSESSION_KEY_PAIRS is not set')
        if isinstance(key_pairs, str):
            key_pairs = parse_key_pairs(key_pairs)

        backend_config = BackendConfig(
            host=config['REDIS_HOST'],
            port=int(config['REDIS_PORT']),
            db=int(config['REDIS_DATABASE']),
            cluster=_flag(config['REDIS_CLUSTER']),
            password=config['REDIS_PASSWORD'],
            check_connection=_flag(config['REDIS_CHECK_CONNECTION'])
        )
        store = SessionStore(backend_config, config['KVSESSION_COOKIE_PATH'],
                             int(config['KVSESSION_MAX_AGE']), *key_pairs,
                             backend=self.backend)
        store.options.domain = config['KVSESSION_COOKIE_DOMAIN']
        store.options.secure = _flag(config['KVSESSION_COOKIE_SECURE'])
        store.options.http_only = _flag(config['KVSESSION_COOKIE_HTTPONLY'])
        store.options.same_site = config['KVSESSION_COOKIE_SAMESITE'] or None
        return store


def save_sessions(response: Response) -> Response:
    """Save the sessions loaded during this request (``after_request``)."""
    if ENVIRON_KEY not in request.environ:
        return response
    try:
        save_all(request._get_current_object(), response)  # type: ignore
    except SessionStoreError as e:
        logger.error('Failed to save sessions: %s', e)
        raise
    return response


def current_store() -> SessionStore:
    """Get the :class:`.SessionStore` of the current app."""
    try:
        store: SessionStore = current_app.extensions[EXTENSION_KEY]
    except KeyError as e:
        raise ConfigurationError('KVSession is not initialized') from e
    return store


def get_session(name: Optional[str] = None) -> Session:
    """
    Get a session for the current request.

    Parameters
    ----------
    name : str
        Session (cookie) name. Defaults to ``KVSESSION_COOKIE_NAME``.

    """
    if name is None:
        name = current_app.config['KVSESSION_COOKIE_NAME']
    return current_store().get(request._get_current_object(),  # type: ignore
                               name)
