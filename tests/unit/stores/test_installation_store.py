"""
Redisインストール情報ストアの単体テスト。

RedisClientはモックに差し替え、キーの決定と保存形式をテストする。
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.oauth.installation_store import Installation

from dash.stores.installation_store import (
    KEY_PREFIX,
    InstallationNotFoundError,
    RedisInstallationStore,
    installation_key,
)


def make_installation(**overrides: object) -> Installation:
    fields: dict = {
        "app_id": "A1",
        "team_id": "T1",
        "bot_token": "xoxb-installed",
        "bot_id": "B1",
        "bot_user_id": "UBOT",
        "user_id": "U1",
    }
    fields.update(overrides)
    return Installation(**fields)


class TestInstallationKey:
    """installation_key のテスト。"""

    def test_team_install_uses_team_id(self) -> None:
        """通常のインストールは team_id をキーにする。"""
        assert installation_key("E1", "T1") == "T1"

    def test_enterprise_install_uses_enterprise_id(self) -> None:
        """組織単位のインストールは enterprise_id をキーにする。"""
        assert installation_key("E1", None, is_enterprise_install=True) == "E1"

    def test_missing_ids_raise(self) -> None:
        """どちらのIDもない場合は ValueError。"""
        with pytest.raises(ValueError):
            installation_key(None, None)


class TestRedisInstallationStore:
    """RedisInstallationStore のテスト。"""

    @pytest.fixture
    def redis(self) -> MagicMock:
        """モックされたRedisClient(メモリ上に保存する)。"""
        data: dict[str, str] = {}
        mock = MagicMock()

        async def set_(key: str, value: str, ex: int | None = None) -> None:
            data[key] = value

        async def delete(key: str) -> bool:
            return data.pop(key, None) is not None

        mock.set = AsyncMock(side_effect=set_)
        mock.get = AsyncMock(side_effect=lambda key: data.get(key))
        mock.delete = AsyncMock(side_effect=delete)
        mock.data = data
        return mock

    @pytest.fixture
    def store(self, redis: MagicMock) -> RedisInstallationStore:
        return RedisInstallationStore(redis)

    @pytest.mark.asyncio
    async def test_save_then_find(self, store: RedisInstallationStore, redis: MagicMock) -> None:
        """保存したインストール情報を team_id で取得できる。"""
        await store.async_save(make_installation())

        saved = json.loads(redis.data[f"{KEY_PREFIX}T1"])
        assert saved["bot_token"] == "xoxb-installed"

        found = await store.async_find_installation(enterprise_id=None, team_id="T1")
        assert found is not None
        assert found.bot_token == "xoxb-installed"
        assert found.bot_user_id == "UBOT"

    @pytest.mark.asyncio
    async def test_save_overwrites_existing_record(
        self, store: RedisInstallationStore, redis: MagicMock
    ) -> None:
        """同じワークスペースへの再インストールは上書きされる。"""
        await store.async_save(make_installation(bot_token="xoxb-old"))
        await store.async_save(make_installation(bot_token="xoxb-new"))

        found = await store.async_find_installation(enterprise_id=None, team_id="T1")
        assert found is not None
        assert found.bot_token == "xoxb-new"
        assert list(redis.data) == [f"{KEY_PREFIX}T1"]

    @pytest.mark.asyncio
    async def test_find_bot(self, store: RedisInstallationStore) -> None:
        """ボット情報はインストール情報から作られる。"""
        await store.async_save(make_installation())

        bot = await store.async_find_bot(enterprise_id=None, team_id="T1")

        assert bot is not None
        assert bot.bot_token == "xoxb-installed"

    @pytest.mark.asyncio
    async def test_find_unknown_returns_none(self, store: RedisInstallationStore) -> None:
        """未インストールのワークスペースは None。"""
        assert await store.async_find_installation(enterprise_id=None, team_id="T9") is None
        assert await store.async_find_bot(enterprise_id=None, team_id="T9") is None

    @pytest.mark.asyncio
    async def test_fetch_unknown_raises(self, store: RedisInstallationStore) -> None:
        """fetch は存在しない場合に InstallationNotFoundError。"""
        with pytest.raises(InstallationNotFoundError):
            await store.fetch(None, "T9")

    @pytest.mark.asyncio
    async def test_delete_installation(
        self, store: RedisInstallationStore, redis: MagicMock
    ) -> None:
        """削除後は取得できない。存在しないキーの削除はエラーにならない。"""
        await store.async_save(make_installation())

        await store.async_delete_installation(enterprise_id=None, team_id="T1")
        await store.async_delete_installation(enterprise_id=None, team_id="T1")

        assert redis.data == {}
        assert await store.async_find_installation(enterprise_id=None, team_id="T1") is None

    @pytest.mark.asyncio
    async def test_enterprise_install_is_keyed_by_enterprise(
        self, store: RedisInstallationStore, redis: MagicMock
    ) -> None:
        """組織単位のインストールは enterprise_id で保存される。"""
        await store.async_save(
            make_installation(enterprise_id="E1", team_id=None, is_enterprise_install=True)
        )

        assert f"{KEY_PREFIX}E1" in redis.data
        found = await store.async_find_installation(
            enterprise_id="E1", team_id=None, is_enterprise_install=True
        )
        assert found is not None
        assert found.enterprise_id == "E1"
