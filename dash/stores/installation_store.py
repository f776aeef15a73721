"""
インストール情報ストアモジュール。

複数ワークスペースへのインストール時に、認証情報(Installation)を
Redisに保存する。キーはEnterprise Gridの組織インストールなら enterprise_id、
それ以外は team_id で、1キーにつき1レコード(後勝ちの上書き)。

slack_sdk の AsyncInstallationStore を実装し、Bolt の OAuth フローから使用される。
"""

import json
import logging
from logging import Logger

from slack_sdk.oauth.installation_store import Bot, Installation
from slack_sdk.oauth.installation_store.async_installation_store import AsyncInstallationStore

from dash.redis.client import RedisClient

logger = logging.getLogger(__name__)

KEY_PREFIX = "installation:"


class InstallationNotFoundError(Exception):
    """指定されたキーのインストール情報が存在しない。"""


def installation_key(
    enterprise_id: str | None,
    team_id: str | None,
    is_enterprise_install: bool | None = False,
) -> str:
    """インストール情報のキーを決定する。

    Args:
        enterprise_id: Enterprise GridのID
        team_id: ワークスペースID
        is_enterprise_install: 組織単位のインストールかどうか

    Returns:
        enterprise_id または team_id

    Raises:
        ValueError: どちらのIDも決定できない場合
    """
    if is_enterprise_install and enterprise_id:
        return enterprise_id
    if team_id:
        return team_id
    msg = "Failed to determine installation key: no team_id or enterprise_id"
    raise ValueError(msg)


class RedisInstallationStore(AsyncInstallationStore):
    """Redisを使ったインストール情報ストア。

    Attributes:
        _redis: Redisクライアント
    """

    def __init__(self, redis: RedisClient) -> None:
        """RedisInstallationStoreを初期化する。

        Args:
            redis: 接続済みのRedisクライアント
        """
        self._redis = redis

    @property
    def logger(self) -> Logger:
        return logger

    async def store(self, installation: Installation) -> None:
        """インストール情報を保存する(同じキーがあれば上書き)。"""
        key = installation_key(
            installation.enterprise_id,
            installation.team_id,
            installation.is_enterprise_install,
        )
        await self._redis.set(f"{KEY_PREFIX}{key}", json.dumps(installation.__dict__))
        logger.info("Stored installation", extra={"installation_key": key})

    async def fetch(
        self,
        enterprise_id: str | None,
        team_id: str | None,
        is_enterprise_install: bool | None = False,
    ) -> Installation:
        """インストール情報を取得する。

        Raises:
            InstallationNotFoundError: 存在しない場合
        """
        key = installation_key(enterprise_id, team_id, is_enterprise_install)
        data = await self._redis.get(f"{KEY_PREFIX}{key}")
        if data is None:
            raise InstallationNotFoundError(f"No installation found for {key}")
        return Installation(**json.loads(data))

    async def delete(
        self,
        enterprise_id: str | None,
        team_id: str | None,
        is_enterprise_install: bool | None = False,
    ) -> None:
        """インストール情報を削除する。存在しない場合は何もしない。"""
        key = installation_key(enterprise_id, team_id, is_enterprise_install)
        deleted = await self._redis.delete(f"{KEY_PREFIX}{key}")
        logger.info("Deleted installation", extra={"installation_key": key, "deleted": deleted})

    async def async_save(self, installation: Installation) -> None:
        await self.store(installation)

    async def async_save_bot(self, bot: Bot) -> None:
        # Bot単体は保存しない(Installationに含まれる)
        logger.debug("Ignoring standalone bot save", extra={"bot_id": bot.bot_id})

    async def async_find_installation(
        self,
        *,
        enterprise_id: str | None,
        team_id: str | None,
        user_id: str | None = None,
        is_enterprise_install: bool | None = False,
    ) -> Installation | None:
        try:
            return await self.fetch(enterprise_id, team_id, is_enterprise_install)
        except InstallationNotFoundError:
            logger.warning(
                "Installation not found",
                extra={"enterprise_id": enterprise_id, "team_id": team_id},
            )
            return None

    async def async_find_bot(
        self,
        *,
        enterprise_id: str | None,
        team_id: str | None,
        is_enterprise_install: bool | None = False,
    ) -> Bot | None:
        installation = await self.async_find_installation(
            enterprise_id=enterprise_id,
            team_id=team_id,
            is_enterprise_install=is_enterprise_install,
        )
        return installation.to_bot() if installation is not None else None

    async def async_delete_installation(
        self,
        *,
        enterprise_id: str | None,
        team_id: str | None,
        user_id: str | None = None,
    ) -> None:
        await self.delete(enterprise_id, team_id, is_enterprise_install=team_id is None)

    async def async_delete_bot(self, *, enterprise_id: str | None, team_id: str | None) -> None:
        await self.delete(enterprise_id, team_id, is_enterprise_install=team_id is None)

    async def async_delete_all(self, *, enterprise_id: str | None, team_id: str | None) -> None:
        await self.delete(enterprise_id, team_id, is_enterprise_install=team_id is None)
