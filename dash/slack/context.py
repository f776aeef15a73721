"""
ハンドラ共有の依存関係モジュール。

ボットIDのキャッシュ、ディレクトリキャッシュ、要約器などプロセス内で共有する
オブジェクトを起動時に1つのコンテキストにまとめ、Boltのミドルウェアで
各リクエストの context["deps"] に注入する。
"""

from dataclasses import dataclass
from typing import Any

from dash.broadcast import Summarizer
from dash.channels import BotIdentity, ChannelDirectoryService, DirectoryCache
from dash.config import Settings
from dash.stores import RedisInstallationStore


@dataclass
class AppContext:
    """ハンドラが使用する依存関係。

    Attributes:
        bot_identity: ボットIDのキャッシュ
        directory: ディレクトリサービス(TTLキャッシュ付き)
        summarizer: AI要約器
        installation_store: インストール情報ストア(複数ワークスペース運用時のみ)
    """

    bot_identity: BotIdentity
    directory: ChannelDirectoryService
    summarizer: Summarizer
    installation_store: RedisInstallationStore | None = None


def build_app_context(
    settings: Settings,
    installation_store: RedisInstallationStore | None = None,
) -> AppContext:
    """設定からAppContextを組み立てる。

    Args:
        settings: アプリケーション設定
        installation_store: インストール情報ストア

    Returns:
        組み立て済みのAppContext
    """
    bot_identity = BotIdentity()
    cache = DirectoryCache(ttl_seconds=settings.directory_cache_ttl_seconds)
    return AppContext(
        bot_identity=bot_identity,
        directory=ChannelDirectoryService(bot_identity, cache),
        summarizer=Summarizer(settings.openai_api_key, settings.openai_model),
        installation_store=installation_store,
    )


def get_deps(context: dict[str, Any]) -> AppContext:
    """Boltのcontextから依存関係を取り出す。"""
    deps: AppContext = context["deps"]
    return deps
