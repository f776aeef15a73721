"""
Dashチャンネル一覧(ディレクトリ)モジュール。

ユーザーが参加しているDashチャンネルを「作成したもの」と「参加しているもの」に
分類し、短時間(TTL)キャッシュする。

- 取得: users.conversations をページングで全件取得し、プレフィックスで絞り込む
- 分類: 候補チャンネルのピン一覧を並列取得し、作成者判定を行う
  (1チャンネルの取得失敗は他チャンネルの分類を妨げない)
- キャッシュ: 取得失敗時は結果をキャッシュしない
"""

import asyncio
import logging
import time
from collections.abc import Callable

from slack_sdk.web.async_client import AsyncWebClient

from dash.channels.creator import BotIdentity, find_creator
from dash.constants import CHANNEL_PREFIX
from dash.models import ChannelDirectory, DashChannel

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 30.0
CONVERSATIONS_PAGE_SIZE = 200

# (team_id, user_id)
CacheKey = tuple[str | None, str]


class DirectoryCache:
    """(ワークスペースID, ユーザーID)をキーとするディレクトリのTTLキャッシュ。

    Enterprise Gridでは同じユーザーIDが複数のワークスペースにまたがるため、
    ワークスペースごとに別のエントリとして保持する。

    期限切れのエントリは次回の読み出し時に破棄する(タイマーによる失効はしない)。

    Attributes:
        _ttl_seconds: エントリの有効期間(秒)
        _clock: 現在時刻(秒)を返す関数
        _entries: (team_id, user_id) -> (取得時刻, ディレクトリ)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """DirectoryCacheを初期化する。

        Args:
            ttl_seconds: エントリの有効期間(秒)
            clock: 現在時刻を返す関数(テストで差し替え可能)
        """
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, ChannelDirectory]] = {}

    def get(self, user_id: str, team_id: str | None = None) -> ChannelDirectory | None:
        """有効なエントリを返す。存在しないか期限切れの場合はNone。"""
        key = (team_id, user_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        captured_at, directory = entry
        if self._clock() - captured_at >= self._ttl_seconds:
            del self._entries[key]
            return None
        return directory

    def set(
        self, user_id: str, directory: ChannelDirectory, team_id: str | None = None
    ) -> None:
        """エントリを丸ごと置き換える。"""
        self._entries[(team_id, user_id)] = (self._clock(), directory)

    def invalidate(self, user_id: str, team_id: str | None = None) -> None:
        """ユーザーのエントリを削除する(存在しない場合は何もしない)。"""
        self._entries.pop((team_id, user_id), None)


async def list_user_dash_channels(client: AsyncWebClient, user_id: str) -> list[DashChannel]:
    """ユーザーが参加している公開Dashチャンネルを全ページ分取得する。

    Args:
        client: Slack Web APIクライアント
        user_id: 対象ユーザーID

    Returns:
        CHANNEL_PREFIXで始まるチャンネルのリスト
    """
    channels: list[DashChannel] = []
    cursor: str | None = None

    while True:
        response = await client.users_conversations(
            user=user_id,
            types="public_channel",
            exclude_archived=True,
            limit=CONVERSATIONS_PAGE_SIZE,
            cursor=cursor,
        )
        for channel in response.get("channels") or []:
            channel_id = channel.get("id")
            name = channel.get("name") or ""
            if channel_id and name.startswith(CHANNEL_PREFIX):
                channels.append(DashChannel(id=channel_id, name=name))

        cursor = (response.get("response_metadata") or {}).get("next_cursor") or None
        if not cursor:
            return channels


async def fetch_dash_channels(
    client: AsyncWebClient,
    bot_identity: BotIdentity,
    user_id: str,
    team_id: str | None = None,
) -> ChannelDirectory:
    """ユーザーのDashチャンネルを取得し、作成者かどうかで分類する。

    ピン一覧の取得に失敗したチャンネルは「作成者ではない」として扱う。

    Args:
        client: Slack Web APIクライアント
        bot_identity: ボットIDのキャッシュ
        user_id: 対象ユーザーID
        team_id: ワークスペースID

    Returns:
        分類済みのディレクトリ
    """
    bot_user_id = await bot_identity.get_user_id(client, team_id)
    candidates = await list_user_dash_channels(client, user_id)
    if not candidates:
        return ChannelDirectory()

    pin_results = await asyncio.gather(
        *(client.pins_list(channel=channel.id) for channel in candidates),
        return_exceptions=True,
    )

    directory = ChannelDirectory()
    for channel, result in zip(candidates, pin_results, strict=True):
        is_creator = False
        if isinstance(result, BaseException):
            logger.warning(
                "Failed to list pins for dash channel: %s",
                result,
                extra={"channel_id": channel.id, "user_id": user_id},
            )
        else:
            is_creator = find_creator(result.get("items"), bot_user_id) == user_id

        if is_creator:
            directory.created.append(channel)
        else:
            directory.member_of.append(channel)

    logger.debug(
        "Fetched dash channels: created=%d, member_of=%d",
        len(directory.created),
        len(directory.member_of),
        extra={"user_id": user_id},
    )
    return directory


class ChannelDirectoryService:
    """キャッシュ付きでユーザーのディレクトリを返すサービス。

    Attributes:
        _bot_identity: ボットIDのキャッシュ
        _cache: ディレクトリキャッシュ
    """

    def __init__(self, bot_identity: BotIdentity, cache: DirectoryCache) -> None:
        """ChannelDirectoryServiceを初期化する。

        Args:
            bot_identity: ボットIDのキャッシュ
            cache: ディレクトリキャッシュ
        """
        self._bot_identity = bot_identity
        self._cache = cache

    async def get_directory(
        self,
        client: AsyncWebClient,
        user_id: str,
        team_id: str | None = None,
    ) -> ChannelDirectory:
        """ディレクトリを返す。TTL内であればネットワーク呼び出しを行わない。

        取得中の例外はキャッシュせずにそのまま送出する。
        """
        cached = self._cache.get(user_id, team_id)
        if cached is not None:
            return cached

        directory = await fetch_dash_channels(client, self._bot_identity, user_id, team_id)
        self._cache.set(user_id, directory, team_id)
        return directory

    def invalidate(self, user_id: str, team_id: str | None = None) -> None:
        """ユーザーのキャッシュを破棄する(チャンネルを閉じた直後に呼ぶ)。"""
        self._cache.invalidate(user_id, team_id)
        logger.debug(
            "Invalidated dash channel cache", extra={"user_id": user_id, "team_id": team_id}
        )
