"""
Redis接続モジュール。

非同期Redis接続とキー/値の状態管理機能を提供する。

主要なエクスポート:
- RedisClient: Redisクライアントのプロトコル型
- AsyncRedisClientImpl: RedisClientの非同期実装
"""

from dash.redis.client import AsyncRedisClientImpl, RedisClient

__all__ = [
    "AsyncRedisClientImpl",
    "RedisClient",
]
