"""
Redis接続モジュールの単体テスト。

モックを使用してRedis依存を分離し、以下の機能をテストする:
- 接続・切断
- set/get/deleteの各機能
- 未接続時のFail-Fast
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dash.redis.client import AsyncRedisClientImpl, RedisClient


class TestRedisClientProtocol:
    """RedisClient Protocolの型定義テスト。"""

    def test_protocol_defines_required_methods(self) -> None:
        """Protocolが必要なメソッドを定義していることを確認。"""
        assert hasattr(RedisClient, "set")
        assert hasattr(RedisClient, "get")
        assert hasattr(RedisClient, "delete")


@pytest.fixture
def mock_redis() -> MagicMock:
    """モックRedisクライアントを作成。"""
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    mock.set = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=b"test_value")
    mock.delete = AsyncMock(return_value=1)
    return mock


@pytest.fixture
def client(mock_redis: MagicMock) -> AsyncRedisClientImpl:
    """テスト用クライアントを作成。"""
    with patch("dash.redis.client.Redis.from_url", return_value=mock_redis):
        return AsyncRedisClientImpl("redis://localhost:6379")


class TestAsyncRedisClientImplConnection:
    """AsyncRedisClientImplの接続テスト。"""

    @pytest.mark.asyncio
    async def test_connect_success(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """正常接続のテスト。"""
        await client.connect()

        mock_redis.ping.assert_called_once()
        assert client.connected is True

    @pytest.mark.asyncio
    async def test_connect_failure_raises_connection_error(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """接続失敗時はConnectionErrorを発生させる。"""
        mock_redis.ping = AsyncMock(side_effect=OSError("refused"))

        with pytest.raises(ConnectionError):
            await client.connect()
        assert client.connected is False

    @pytest.mark.asyncio
    async def test_disconnect(self, client: AsyncRedisClientImpl, mock_redis: MagicMock) -> None:
        """切断のテスト。"""
        await client.connect()
        await client.disconnect()

        mock_redis.aclose.assert_called_once()
        assert client.connected is False


class TestAsyncRedisClientImplKeyValue:
    """AsyncRedisClientImplのset/get/deleteテスト。"""

    @pytest.mark.asyncio
    async def test_set_value(self, client: AsyncRedisClientImpl, mock_redis: MagicMock) -> None:
        """setが値を保存することを確認。"""
        await client.connect()
        await client.set("test_key", "test_value")

        mock_redis.set.assert_called_once_with("test_key", "test_value", ex=None)

    @pytest.mark.asyncio
    async def test_set_value_with_expiration(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """有効期限付きでsetできることを確認。"""
        await client.connect()
        await client.set("test_key", "test_value", ex=3600)

        mock_redis.set.assert_called_once_with("test_key", "test_value", ex=3600)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """getがbytesをデコードして返すことを確認。"""
        await client.connect()

        assert await client.get("test_key") == "test_value"

    @pytest.mark.asyncio
    async def test_get_returns_none_for_missing_key(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """存在しないキーの場合Noneを返すことを確認。"""
        mock_redis.get = AsyncMock(return_value=None)
        await client.connect()

        assert await client.get("missing_key") is None

    @pytest.mark.asyncio
    async def test_delete_reports_removal(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """deleteは削除件数を真偽値で返す。"""
        await client.connect()

        assert await client.delete("test_key") is True
        mock_redis.delete = AsyncMock(return_value=0)
        assert await client.delete("test_key") is False

    @pytest.mark.asyncio
    async def test_operation_failure_marks_disconnected(
        self, client: AsyncRedisClientImpl, mock_redis: MagicMock
    ) -> None:
        """操作の失敗後は切断状態として扱う。"""
        mock_redis.get = AsyncMock(side_effect=OSError("reset"))
        await client.connect()

        with pytest.raises(OSError):
            await client.get("test_key")
        assert client.connected is False


class TestAsyncRedisClientImplFailFast:
    """未接続時のFail-Fastテスト。"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "args"),
        [("set", ("k", "v")), ("get", ("k",)), ("delete", ("k",))],
    )
    async def test_raises_when_not_connected(
        self,
        client: AsyncRedisClientImpl,
        mock_redis: MagicMock,
        method: str,
        args: tuple[str, ...],
    ) -> None:
        """接続前の操作はConnectionErrorを発生させ、Redisを呼び出さない。"""
        with pytest.raises(ConnectionError):
            await getattr(client, method)(*args)

        getattr(mock_redis, method).assert_not_called()
