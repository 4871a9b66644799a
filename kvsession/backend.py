"""
Key-value backend for session records.

Records are plain strings keyed by session ID, held in Redis (a single node
or a cluster) with no expiry. The redis-py client is thread safe and
connections are attached when a command is executed, so one
:class:`RedisBackend` is shared by every request.
"""

import logging
from typing import NamedTuple, Optional, Union

import redis
from redis.cluster import RedisCluster

from .exceptions import BackendConnectionError, RecordMissing, \
    StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

# The cluster client raises RedisClusterException, which is not a RedisError.
BACKEND_ERRORS = (redis.exceptions.RedisError,
                  redis.exceptions.RedisClusterException)


class BackendConfig(NamedTuple):
    """Connection parameters for the key-value backend."""

    host: str = 'localhost'
    port: int = 6379
    db: int = 0
    """Database number. Ignored in cluster mode."""

    cluster: bool = False
    """Connect to a Redis cluster rather than a single node."""

    password: Optional[str] = None
    socket_timeout: Optional[float] = None

    check_connection: bool = False
    """
    Ping the backend when connecting.

    By default connectivity is only checked on first use.
    """


class RedisBackend(object):
    """Puts and gets session records in Redis."""

    def __init__(self, host: str = 'localhost', port: int = 6379,
                 db: int = 0, cluster: bool = False,
                 password: Optional[str] = None,
                 socket_timeout: Optional[float] = None) -> None:
        """
        Create the Redis client.

        A single-node client connects lazily. A cluster client must reach a
        startup node to discover the cluster layout.

        Raises
        ------
        :class:`BackendConnectionError`
            If cluster discovery fails.

        """
        logger.debug('New Redis client for %s, port %s (cluster: %s)',
                     host, port, cluster)
        self.r: Union[redis.StrictRedis, RedisCluster]
        if cluster:
            # The cluster client discovers its nodes on construction.
            try:
                self.r = RedisCluster(host=host, port=port, password=password,
                                      socket_timeout=socket_timeout)
            except BACKEND_ERRORS as e:
                raise BackendConnectionError(
                    f'Could not reach cluster at {host}:{port}: {e}'
                ) from e
        else:
            self.r = redis.StrictRedis(host=host, port=port, db=db,
                                       password=password,
                                       socket_timeout=socket_timeout)

    def ping(self) -> None:
        """
        Check that the backend is reachable.

        Raises
        ------
        :class:`BackendConnectionError`

        """
        try:
            self.r.ping()
        except BACKEND_ERRORS as e:
            raise BackendConnectionError(f'Connection failed: {e}') from e

    def put(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        Raises
        ------
        :class:`StorageWriteError`

        """
        try:
            self.r.set(key, value)
        except redis.exceptions.ConnectionError as e:
            raise StorageWriteError(f'Connection failed: {e}') from e
        except BACKEND_ERRORS as e:
            raise StorageWriteError(f'Failed to write: {e}') from e

    def get(self, key: str) -> str:
        """
        Get the value stored under ``key``.

        Raises
        ------
        :class:`RecordMissing`
            If there is no record for ``key``.
        :class:`StorageReadError`
            If the backend could not be read.

        """
        try:
            raw: Optional[Union[bytes, str]] = self.r.get(key)
        except redis.exceptions.ConnectionError as e:
            raise StorageReadError(f'Connection failed: {e}') from e
        except BACKEND_ERRORS as e:
            raise StorageReadError(f'Failed to read: {e}') from e
        if raw is None:
            raise RecordMissing(f'No record for {key}')
        if isinstance(raw, bytes):
            try:
                return raw.decode('utf-8')
            except UnicodeDecodeError as e:
                raise StorageReadError(f'Record is not valid text: {e}') \
                    from e
        return raw

    def delete(self, key: str) -> None:
        """
        Delete the record for ``key``. Absent keys are ignored.

        Raises
        ------
        :class:`StorageWriteError`

        """
        try:
            self.r.delete(key)
        except redis.exceptions.ConnectionError as e:
            raise StorageWriteError(f'Connection failed: {e}') from e
        except BACKEND_ERRORS as e:
            raise StorageWriteError(f'Failed to delete: {e}') from e

    def close(self) -> None:
        """Release the client's connections."""
        self.r.close()


def connect(config: BackendConfig) -> RedisBackend:
    """
    Create a :class:`RedisBackend` from ``config``.

    Raises
    ------
    :class:`BackendConnectionError`
        If ``config.check_connection`` is set and the backend is unreachable.

    """
    backend = RedisBackend(config.host, config.port, config.db,
                           cluster=config.cluster, password=config.password,
                           socket_timeout=config.socket_timeout)
    if config.check_connection:
        backend.ping()
    return backend
