"""
チャンネル作成者判定モジュール。

作成者はどこにも保存せず、チャンネル作成時にボットがピン留めした
ウェルカムメッセージの本文から復元する:
- 現行形式: "<@USER> created this temporary channel."
- 旧形式: "Temporary channel created by <@USER>"

判定に失敗した場合(ピン一覧の取得エラーなど)は常に「不明」として扱い、
呼び出し側は不明を拒否とみなす(Fail-Closed)。
"""

import asyncio
import logging
import re
from collections.abc import Iterable
from enum import Enum
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient

from dash.constants import CREATOR_MSG_TEXT, LEGACY_CREATOR_MSG_TEXT

logger = logging.getLogger(__name__)

CREATOR_PATTERNS = (
    re.compile(rf"<@(\w+)> {re.escape(CREATOR_MSG_TEXT)}"),
    re.compile(rf"{re.escape(LEGACY_CREATOR_MSG_TEXT)} <@(\w+)>"),
)


class CreatorCheck(Enum):
    """作成者チェックの結果。

    - AUTHORIZED: 呼び出しユーザーが作成者
    - NOT_CREATOR: 作成者が別ユーザー、または作成者メッセージが見つからない
    - UNVERIFIED: ピン一覧の取得などに失敗し判定できない
    """

    AUTHORIZED = "authorized"
    NOT_CREATOR = "not_creator"
    UNVERIFIED = "unverified"


class BotIdentity:
    """ボット自身のユーザーIDを遅延取得してキャッシュする。

    ボットのユーザーIDはプロセスの生存期間中に変化しないため、
    ワークスペース(team_id)ごとに一度だけ auth.test を呼び出す。
    """

    def __init__(self) -> None:
        self._user_ids: dict[str | None, str] = {}
        self._lock = asyncio.Lock()

    async def get_user_id(self, client: AsyncWebClient, team_id: str | None = None) -> str:
        """ボットのユーザーIDを返す。

        Args:
            client: Slack Web APIクライアント
            team_id: ワークスペースID(単一ワークスペース運用ではNone)

        Returns:
            ボットのユーザーID
        """
        cached = self._user_ids.get(team_id)
        if cached is not None:
            return cached

        async with self._lock:
            if team_id not in self._user_ids:
                response = await client.auth_test()
                self._user_ids[team_id] = response["user_id"]
                logger.info(
                    "Resolved bot user id",
                    extra={"team_id": team_id, "bot_user_id": self._user_ids[team_id]},
                )
        return self._user_ids[team_id]


def find_creator(items: Iterable[dict[str, Any]] | None, bot_user_id: str) -> str | None:
    """ピン留めアイテムから作成者のユーザーIDを取り出す。

    ボットが投稿したメッセージのうち、作成者文言に最初に一致したものを採用する。

    Args:
        items: pins.list の items
        bot_user_id: ボット自身のユーザーID

    Returns:
        作成者のユーザーID。見つからない場合はNone。
    """
    for item in items or ():
        message = item.get("message") or {}
        if message.get("user") != bot_user_id:
            continue
        text = message.get("text") or ""
        for pattern in CREATOR_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1)
    return None


async def verify_creator(
    client: AsyncWebClient,
    bot_identity: BotIdentity,
    channel_id: str,
    user_id: str,
    team_id: str | None = None,
) -> CreatorCheck:
    """ユーザーがチャンネルの作成者かどうかを判定する。

    Args:
        client: Slack Web APIクライアント
        bot_identity: ボットIDのキャッシュ
        channel_id: 対象チャンネルID
        user_id: 操作しようとしているユーザーID
        team_id: ワークスペースID

    Returns:
        判定結果。API呼び出しが失敗した場合は UNVERIFIED。
    """
    try:
        bot_user_id, pins = await asyncio.gather(
            bot_identity.get_user_id(client, team_id),
            client.pins_list(channel=channel_id),
        )
    except Exception:
        logger.exception(
            "Failed to verify channel creator",
            extra={"channel_id": channel_id, "user_id": user_id},
        )
        return CreatorCheck.UNVERIFIED

    creator_id = find_creator(pins.get("items"), bot_user_id)
    if creator_id != user_id:
        logger.warning(
            "Unauthorized close attempt",
            extra={"channel_id": channel_id, "user_id": user_id, "creator_id": creator_id},
        )
        return CreatorCheck.NOT_CREATOR
    return CreatorCheck.AUTHORIZED
