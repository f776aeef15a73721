"""
SlackBot実装の単体テスト。

AsyncAppの作成、ハンドラ登録、起動モードの切り替えをテストする。
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dash.slack.actions import HOME_ACTION_PATTERN
from dash.slack.app import BOT_SCOPES, DASH_COMMAND, DashBot, create_app, register_handlers
from dash.slack.handlers import handle_app_uninstalled, handle_dash_command, handle_home_action


def registered(register: MagicMock) -> list[Any]:
    """app.command / app.event などに渡された第1引数の一覧。"""
    return [call[0][0] for call in register.call_args_list]


class TestRegisterHandlers:
    """register_handlers のテスト。"""

    def test_registers_command_and_home_actions(self) -> None:
        """スラッシュコマンドと App Home のアクションを登録する。"""
        app = MagicMock()

        register_handlers(app, deps=MagicMock())

        assert registered(app.command) == [DASH_COMMAND]
        app.command.return_value.assert_called_once_with(handle_dash_command)
        assert HOME_ACTION_PATTERN in registered(app.action)
        assert handle_home_action in registered(app.action.return_value)
        assert registered(app.event) == ["app_home_opened"]

    def test_oauth_registers_installation_events(self) -> None:
        """OAuth運用ではインストール状態のイベントも登録する。"""
        app = MagicMock()

        register_handlers(app, deps=MagicMock(), oauth_enabled=True)

        assert registered(app.event) == ["app_home_opened", "app_uninstalled", "tokens_revoked"]
        assert handle_app_uninstalled in registered(app.event.return_value)

    @pytest.mark.asyncio
    async def test_middleware_injects_deps(self) -> None:
        """ミドルウェアが context["deps"] に依存関係を注入する。"""
        app = MagicMock()
        deps = MagicMock()
        register_handlers(app, deps=deps)
        middleware = app.middleware.call_args[0][0]
        context: dict[str, Any] = {}
        next_ = AsyncMock()

        await middleware(context=context, next=next_)

        assert context["deps"] is deps
        next_.assert_called_once()


class TestCreateApp:
    """create_app のテスト。"""

    def test_single_workspace_uses_bot_token(self) -> None:
        """OAuthが無効ならボットトークンでAsyncAppを作成する。"""
        settings = MagicMock(oauth_enabled=False, slack_bot_token="xoxb-test")

        with patch("dash.slack.app.AsyncApp") as async_app:
            app = create_app(settings, MagicMock())

        async_app.assert_called_once_with(token="xoxb-test")
        assert app is async_app.return_value

    def test_oauth_uses_installation_store(self) -> None:
        """OAuthが有効ならインストール情報ストアを使うOAuth設定で作成する。"""
        settings = MagicMock(
            oauth_enabled=True,
            slack_signing_secret="secret",
            slack_client_id="123.456",
            slack_client_secret="client-secret",
        )
        deps = MagicMock()

        with (
            patch("dash.slack.app.AsyncApp") as async_app,
            patch("dash.slack.app.AsyncOAuthSettings") as oauth_settings,
        ):
            create_app(settings, deps)

        oauth_settings.assert_called_once_with(
            client_id="123.456",
            client_secret="client-secret",
            scopes=BOT_SCOPES,
            installation_store=deps.installation_store,
        )
        async_app.assert_called_once_with(
            signing_secret="secret", oauth_settings=oauth_settings.return_value
        )

    def test_oauth_requires_installation_store(self) -> None:
        """OAuthが有効でストアがない場合は ValueError。"""
        settings = MagicMock(oauth_enabled=True)

        with pytest.raises(ValueError):
            create_app(settings, MagicMock(installation_store=None))


class TestDashBotStart:
    """DashBot.start のテスト。"""

    @pytest.mark.asyncio
    async def test_socket_mode(self) -> None:
        """ポート指定がなければSocket Modeで接続する。"""
        app = MagicMock()

        with patch("dash.slack.app.SocketModeHandler") as handler_cls:
            handler_cls.return_value.start_async = AsyncMock()
            await DashBot(app, app_token="xapp-test").start()

        handler_cls.assert_called_once_with(app=app, app_token="xapp-test")
        handler_cls.return_value.start_async.assert_called_once()

    @pytest.mark.asyncio
    async def test_socket_mode_requires_app_token(self) -> None:
        """Socket Modeでapp_tokenがなければ ValueError。"""
        with pytest.raises(ValueError):
            await DashBot(MagicMock()).start()

    @pytest.mark.asyncio
    async def test_http_cleans_up_on_bind_failure(self) -> None:
        """HTTPモードで待ち受けに失敗してもランナーを後始末する。"""
        app = MagicMock()

        with (
            patch("dash.slack.app.web.AppRunner") as runner_cls,
            patch("dash.slack.app.web.TCPSite") as site_cls,
        ):
            runner = runner_cls.return_value
            runner.setup = AsyncMock()
            runner.cleanup = AsyncMock()
            site_cls.return_value.start = AsyncMock(side_effect=OSError("address in use"))

            with pytest.raises(OSError):
                await DashBot(app, http_port=3000).start()

        app.web_app.assert_called_once_with(path="/slack/events", port=3000)
        site_cls.assert_called_once_with(runner, port=3000)
        runner.cleanup.assert_called_once()
