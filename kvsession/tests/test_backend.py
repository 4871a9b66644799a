"""Tests for :mod:`kvsession.backend`."""

from unittest import TestCase, mock

from redis.exceptions import ConnectionError, ResponseError, \
    RedisClusterException

from .. import backend
from ..exceptions import BackendConnectionError, RecordMissing, \
    StorageReadError, StorageWriteError


class TestRedisBackend(TestCase):
    """The backend puts and gets records in Redis."""

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_put(self, mock_redis):
        """Records are written with no expiry."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        r = backend.RedisBackend('localhost', 6379, 0)
        r.put('fookey', 'foovalue')
        conn.set.assert_called_once_with('fookey', 'foovalue')
        mock_redis.assert_called_once_with(host='localhost', port=6379, db=0,
                                           password=None, socket_timeout=None)

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_put_fails(self, mock_redis):
        """:class:`.StorageWriteError` is raised when the write fails."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        r = backend.RedisBackend()
        for exc in (ConnectionError, ResponseError):
            conn.set.side_effect = exc
            with self.assertRaises(StorageWriteError):
                r.put('fookey', 'foovalue')

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_get(self, mock_redis):
        """Bytes from Redis are decoded as text."""
        conn = mock.MagicMock()
        conn.get.return_value = b'foovalue'
        mock_redis.return_value = conn
        self.assertEqual(backend.RedisBackend().get('fookey'), 'foovalue')

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_get_missing(self, mock_redis):
        """:class:`.RecordMissing` is raised for an unknown key."""
        conn = mock.MagicMock()
        conn.get.return_value = None
        mock_redis.return_value = conn
        with self.assertRaises(RecordMissing):
            backend.RedisBackend().get('fookey')

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_get_fails(self, mock_redis):
        """:class:`.StorageReadError` is raised when the read fails."""
        conn = mock.MagicMock()
        conn.get.side_effect = ConnectionError
        mock_redis.return_value = conn
        with self.assertRaises(StorageReadError) as ctx:
            backend.RedisBackend().get('fookey')
        self.assertNotIsInstance(ctx.exception, RecordMissing)

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_get_not_text(self, mock_redis):
        """A record that isn't UTF-8 can't be read."""
        conn = mock.MagicMock()
        conn.get.return_value = b'\xff\xfe'
        mock_redis.return_value = conn
        with self.assertRaises(StorageReadError):
            backend.RedisBackend().get('fookey')

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_delete(self, mock_redis):
        """Records can be deleted."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        r = backend.RedisBackend()
        r.delete('fookey')
        conn.delete.assert_called_once_with('fookey')

        conn.delete.side_effect = ConnectionError
        with self.assertRaises(StorageWriteError):
            r.delete('fookey')

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_close(self, mock_redis):
        """Closing the backend closes the client."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        backend.RedisBackend().close()
        self.assertEqual(conn.close.call_count, 1)

    @mock.patch(f'{backend.__name__}.RedisCluster')
    def test_cluster(self, mock_cluster):
        """A cluster client is used in cluster mode."""
        backend.RedisBackend('redis', 7000, cluster=True)
        mock_cluster.assert_called_once_with(host='redis', port=7000,
                                             password=None,
                                             socket_timeout=None)

    @mock.patch(f'{backend.__name__}.RedisCluster')
    def test_cluster_unreachable(self, mock_cluster):
        """Cluster discovery failures raise on construction."""
        mock_cluster.side_effect = RedisClusterException('no nodes')
        with self.assertRaises(BackendConnectionError):
            backend.RedisBackend('redis', 7000, cluster=True)

    @mock.patch(f'{backend.__name__}.RedisCluster')
    def test_cluster_errors(self, mock_cluster):
        """Cluster client errors are mapped to domain errors."""
        conn = mock.MagicMock()
        mock_cluster.return_value = conn
        r = backend.RedisBackend('redis', 7000, cluster=True)
        failed = RedisClusterException('All nodes failed')
        conn.get.side_effect = failed
        conn.set.side_effect = failed
        conn.delete.side_effect = failed
        conn.ping.side_effect = failed

        with self.assertRaises(StorageReadError) as ctx:
            r.get('fookey')
        self.assertNotIsInstance(ctx.exception, RecordMissing)
        with self.assertRaises(StorageWriteError):
            r.put('fookey', 'foovalue')
        with self.assertRaises(StorageWriteError):
            r.delete('fookey')
        with self.assertRaises(BackendConnectionError):
            r.ping()


class TestConnect(TestCase):
    """Tests for :func:`.backend.connect`."""

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_lazy(self, mock_redis):
        """By default, the backend is not contacted."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        backend.connect(backend.BackendConfig())
        self.assertEqual(conn.ping.call_count, 0)

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_check_connection(self, mock_redis):
        """The backend can be pinged eagerly."""
        conn = mock.MagicMock()
        mock_redis.return_value = conn
        backend.connect(backend.BackendConfig(check_connection=True))
        self.assertEqual(conn.ping.call_count, 1)

    @mock.patch(f'{backend.__name__}.redis.StrictRedis')
    def test_unreachable(self, mock_redis):
        """An unreachable backend raises :class:`.BackendConnectionError`."""
        conn = mock.MagicMock()
        conn.ping.side_effect = ConnectionError
        mock_redis.return_value = conn
        with self.assertRaises(BackendConnectionError):
            backend.connect(backend.BackendConfig(check_connection=True))
