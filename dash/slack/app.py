"""
SlackBot実装モジュール。

- AsyncAppを作成し、全ハンドラとdeps注入ミドルウェアを登録する
- 単一ワークスペース運用: Socket Modeで接続(外部公開URL不要)
- 複数ワークスペース運用: OAuthでインストールを受け付け、HTTPでイベントを受信する
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler as SocketModeHandler
from slack_bolt.async_app import AsyncApp
from slack_bolt.oauth.async_oauth_settings import AsyncOAuthSettings

from dash.config import Settings
from dash.slack.actions import HOME_ACTION_PATTERN
from dash.slack.context import AppContext
from dash.slack.handlers import (
    handle_app_home_opened,
    handle_app_uninstalled,
    handle_broadcast_action,
    handle_broadcast_submission,
    handle_close_action,
    handle_create_submission,
    handle_dash_command,
    handle_generate_ai_summary,
    handle_home_action,
    handle_home_create,
    handle_tokens_revoked,
)
from dash.views import (
    BROADCAST_AND_CLOSE_ACTION,
    BROADCAST_SUBMIT_CALLBACK,
    CLOSE_CHANNEL_ACTION,
    CREATE_CHANNEL_CALLBACK,
    GENERATE_AI_SUMMARY_ACTION,
    HOME_CREATE_ACTION,
)

logger = logging.getLogger(__name__)

DASH_COMMAND = "/dash"
EVENTS_PATH = "/slack/events"

# OAuthインストール時に要求するボットスコープ
BOT_SCOPES = [
    "channels:history",
    "channels:join",
    "channels:manage",
    "channels:read",
    "chat:write",
    "commands",
    "pins:read",
    "pins:write",
    "users:read",
]


def register_handlers(app: AsyncApp, deps: AppContext, oauth_enabled: bool = False) -> None:
    """AsyncAppにミドルウェアとハンドラを登録する。

    Args:
        app: slack-boltのAsyncAppインスタンス
        deps: ハンドラ共有の依存関係
        oauth_enabled: インストール状態のイベントを受け付けるかどうか
    """

    @app.middleware
    async def inject_deps(
        context: dict[str, Any],
        next: Callable[[], Awaitable[None]],
    ) -> None:
        context["deps"] = deps
        await next()

    app.command(DASH_COMMAND)(handle_dash_command)
    app.view(CREATE_CHANNEL_CALLBACK)(handle_create_submission)
    app.action(CLOSE_CHANNEL_ACTION)(handle_close_action)
    app.action(BROADCAST_AND_CLOSE_ACTION)(handle_broadcast_action)
    app.action(GENERATE_AI_SUMMARY_ACTION)(handle_generate_ai_summary)
    app.view(BROADCAST_SUBMIT_CALLBACK)(handle_broadcast_submission)

    app.event("app_home_opened")(handle_app_home_opened)
    app.action(HOME_CREATE_ACTION)(handle_home_create)
    app.action(HOME_ACTION_PATTERN)(handle_home_action)

    if oauth_enabled:
        app.event("app_uninstalled")(handle_app_uninstalled)
        app.event("tokens_revoked")(handle_tokens_revoked)


def create_app(settings: Settings, deps: AppContext) -> AsyncApp:
    """設定に応じたAsyncAppを作成し、ハンドラを登録する。

    OAuthが有効な場合はインストール情報ストアからトークンを解決する。
    それ以外はボットトークンを直接使用する。

    Args:
        settings: アプリケーション設定
        deps: ハンドラ共有の依存関係

    Returns:
        ハンドラ登録済みのAsyncApp
    """
    if settings.oauth_enabled:
        if deps.installation_store is None:
            msg = "installation_store is required when OAuth is enabled"
            raise ValueError(msg)
        app = AsyncApp(
            signing_secret=settings.slack_signing_secret,
            oauth_settings=AsyncOAuthSettings(
                client_id=settings.slack_client_id,
                client_secret=settings.slack_client_secret,
                scopes=BOT_SCOPES,
                installation_store=deps.installation_store,
            ),
        )
    else:
        app = AsyncApp(token=settings.slack_bot_token)

    register_handlers(app, deps, oauth_enabled=settings.oauth_enabled)
    return app


class DashBot:
    """Dash Botの起動を担当する。

    Attributes:
        _app: slack-boltのAsyncAppインスタンス
        _app_token: Socket Mode用のアプリトークン
        _http_port: HTTPモードの待ち受けポート(Noneの場合はSocket Mode)
        _handler: Socket Modeハンドラ
    """

    def __init__(
        self,
        app: AsyncApp,
        app_token: str | None = None,
        http_port: int | None = None,
    ) -> None:
        """DashBotを初期化する。

        Args:
            app: slack-boltのAsyncAppインスタンス
            app_token: Socket Mode用のアプリトークン(xapp-で始まる)
            http_port: HTTPモードで起動する場合のポート
        """
        self._app = app
        self._app_token = app_token
        self._http_port = http_port
        self._handler: SocketModeHandler | None = None

    async def start(self) -> None:
        """Slackとの接続を開始する。

        Raises:
            ValueError: Socket Modeでapp_tokenが設定されていない場合
        """
        if self._http_port is not None:
            await self._start_http(self._http_port)
            return

        if self._app_token is None:
            msg = "app_token is required for Socket Mode"
            raise ValueError(msg)

        self._handler = SocketModeHandler(app=self._app, app_token=self._app_token)
        logger.info("Starting Socket Mode connection...")
        await self._handler.start_async()

    async def _start_http(self, port: int) -> None:
        """HTTPでイベントとOAuthリダイレクトを受け付ける。"""
        runner = web.AppRunner(self._app.web_app(path=EVENTS_PATH, port=port))
        await runner.setup()

        try:
            site = web.TCPSite(runner, port=port)
            await site.start()
            logger.info("Listening for Slack events over HTTP", extra={"port": port})
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()
