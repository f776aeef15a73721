"""
Redis接続クライアントモジュール。

インストール情報ストアが使用するキー/値アクセスを提供する:
- Protocol型でインターフェース定義
- 非同期Redis接続(redis-py async)
- 状態保存(set/get/delete)機能
- 未接続時はFail-Fast(ConnectionError)
"""

import logging
from typing import Protocol

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class RedisClient(Protocol):
    """Redisクライアントのプロトコル型。

    - set: キー/値の保存(上書き)
    - get: キー/値の取得
    - delete: キーの削除
    """

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        """キー/値を保存する。

        Args:
            key: 保存するキー
            value: 保存する値
            ex: 有効期限(秒)。Noneの場合は無期限。
        """
        ...

    async def get(self, key: str) -> str | None:
        """キーに対応する値を取得する。

        Args:
            key: 取得するキー

        Returns:
            キーに対応する値。存在しない場合はNone。
        """
        ...

    async def delete(self, key: str) -> bool:
        """キーを削除する。

        Args:
            key: 削除するキー

        Returns:
            キーが存在して削除された場合はTrue
        """
        ...


class AsyncRedisClientImpl:
    """RedisClientの非同期実装。

    Attributes:
        _redis_url: Redis接続URL
        _redis: Redisクライアントインスタンス
        _connected: 接続状態フラグ
    """

    def __init__(self, redis_url: str) -> None:
        """AsyncRedisClientImplを初期化する。

        Args:
            redis_url: Redis接続URL (例: redis://localhost:6379)
        """
        self._redis_url = redis_url
        self._redis: Redis = Redis.from_url(redis_url)
        self._connected = False

        logger.info("Redis client initialized with URL: %s", redis_url)

    @property
    def connected(self) -> bool:
        """接続済みかどうかを返す。"""
        return self._connected

    async def connect(self) -> None:
        """Redisに接続する。

        接続に失敗した場合はConnectionErrorを発生させる(Fail-Fast)。
        """
        try:
            await self._redis.ping()
            self._connected = True
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.error("Failed to connect to Redis: %s", e)
            raise ConnectionError(f"Failed to connect to Redis: {e}") from e

    async def disconnect(self) -> None:
        """Redisから切断する。"""
        await self._redis.aclose()
        self._connected = False
        logger.info("Disconnected from Redis")

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        """キー/値を保存する。

        Args:
            key: 保存するキー
            value: 保存する値
            ex: 有効期限(秒)。Noneの場合は無期限。

        Raises:
            ConnectionError: Redisに接続されていない場合
        """
        self._ensure_connected("set value")

        try:
            await self._redis.set(key, value, ex=ex)
            logger.debug("Set key %s with expiration %s", key, ex)
        except Exception as e:
            logger.error("Failed to set key %s: %s", key, e)
            self._connected = False
            raise

    async def get(self, key: str) -> str | None:
        """キーに対応する値を取得する。

        Args:
            key: 取得するキー

        Returns:
            キーに対応する値。存在しない場合はNone。

        Raises:
            ConnectionError: Redisに接続されていない場合
        """
        self._ensure_connected("get value")

        try:
            result = await self._redis.get(key)
            if result is None:
                return None
            if isinstance(result, bytes):
                return result.decode("utf-8")
            return str(result)
        except Exception as e:
            logger.error("Failed to get key %s: %s", key, e)
            self._connected = False
            raise

    async def delete(self, key: str) -> bool:
        """キーを削除する。

        Args:
            key: 削除するキー

        Returns:
            キーが存在して削除された場合はTrue

        Raises:
            ConnectionError: Redisに接続されていない場合
        """
        self._ensure_connected("delete key")

        try:
            deleted = await self._redis.delete(key)
            logger.debug("Deleted key %s (removed=%d)", key, deleted)
            return bool(deleted)
        except Exception as e:
            logger.error("Failed to delete key %s: %s", key, e)
            self._connected = False
            raise

    def _ensure_connected(self, operation: str) -> None:
        if not self._connected:
            logger.error("Cannot %s: not connected to Redis", operation)
            raise ConnectionError("Not connected to Redis")
