"""
永続化モジュール。

複数ワークスペース運用時のインストール情報ストアを提供する。
"""

from dash.stores.installation_store import (
    InstallationNotFoundError,
    RedisInstallationStore,
    installation_key,
)

__all__ = [
    "InstallationNotFoundError",
    "RedisInstallationStore",
    "installation_key",
]
