"""
Pytest設定と共有フィクスチャ。

プロジェクト全体で共有されるフィクスチャと設定を定義します。
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.helpers import BOT_USER_ID


@pytest.fixture
def slack_client() -> MagicMock:
    """テスト用のSlack Web APIクライアント。

    すべてのAPIメソッドは成功時の最小限のレスポンスを返す。
    """
    client = MagicMock()
    client.auth_test = AsyncMock(return_value={"ok": True, "user_id": BOT_USER_ID})
    client.conversations_create = AsyncMock(
        return_value={"ok": True, "channel": {"id": "CNEW", "name": "-new"}}
    )
    client.conversations_setTopic = AsyncMock(return_value={"ok": True})
    client.conversations_setPurpose = AsyncMock(return_value={"ok": True})
    client.conversations_invite = AsyncMock(return_value={"ok": True})
    client.conversations_join = AsyncMock(return_value={"ok": True})
    client.conversations_archive = AsyncMock(return_value={"ok": True})
    client.conversations_info = AsyncMock(
        return_value={"ok": True, "channel": {"id": "CDEST", "name": "general"}}
    )
    client.conversations_history = AsyncMock(return_value={"ok": True, "messages": []})
    client.chat_postMessage = AsyncMock(return_value={"ok": True, "ts": "1700000000.000100"})
    client.chat_postEphemeral = AsyncMock(return_value={"ok": True})
    client.pins_add = AsyncMock(return_value={"ok": True})
    client.pins_list = AsyncMock(return_value={"ok": True, "items": []})
    client.users_conversations = AsyncMock(
        return_value={"ok": True, "channels": [], "response_metadata": {"next_cursor": ""}}
    )
    client.users_info = AsyncMock(return_value={"ok": True, "user": {}})
    client.views_open = AsyncMock(return_value={"ok": True})
    client.views_update = AsyncMock(return_value={"ok": True})
    client.views_publish = AsyncMock(return_value={"ok": True})
    return client
