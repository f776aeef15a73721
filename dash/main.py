"""
アプリケーションのエントリーポイント。

環境変数の読み込み、依存関係の組み立て、AsyncAppの作成とハンドラの登録を行い、
Socket Mode(単一ワークスペース)またはHTTP(OAuth、複数ワークスペース)で起動する。

    python -m dash.main
"""

import asyncio
import logging

from dash.config import get_settings
from dash.redis import AsyncRedisClientImpl
from dash.slack import DashBot, build_app_context, create_app
from dash.stores import RedisInstallationStore

logger = logging.getLogger(__name__)


async def main() -> None:
    """アプリケーションのエントリーポイント。

    以下の処理を順次実行する:
    1. 環境変数から設定を読み込み、ロギングを設定
    2. OAuthが有効ならRedisに接続し、インストール情報ストアを作成
    3. 依存関係(AppContext)を組み立て
    4. AsyncAppを作成してハンドラを登録
    5. DashBotを起動
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    redis_client: AsyncRedisClientImpl | None = None
    installation_store: RedisInstallationStore | None = None
    if settings.oauth_enabled:
        redis_client = AsyncRedisClientImpl(settings.redis_url)
        await redis_client.connect()
        installation_store = RedisInstallationStore(redis_client)

    deps = build_app_context(settings, installation_store)
    app = create_app(settings, deps)

    bot = DashBot(
        app=app,
        app_token=settings.slack_app_token,
        http_port=settings.port if settings.oauth_enabled else None,
    )

    logger.info("Starting Dash bot...", extra={"oauth_enabled": settings.oauth_enabled})
    try:
        await bot.start()
    finally:
        if redis_client is not None:
            await redis_client.disconnect()


def run() -> None:
    """コンソールスクリプト用の同期エントリーポイント。"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
