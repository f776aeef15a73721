"""
チャンネルのライフサイクル(作成/クローズ)ワークフローモジュール。

作成:
1. チャンネル名の検証(スラッグ化して空ならフィールドエラー)
2. チャンネル作成(name_taken は重複名のフィールドエラー、その他は再試行を促すエラー)
3. トピック(常に)とパーポス(指定時のみ)を並列に設定
4. 作成者を必ず1回だけ含めて招待
5. ウェルカムメッセージの投稿とピン留め
   (3-5のいずれかが失敗してもロールバックせず、チャンネル内に注意文を1回投稿)
6. 作成元チャンネルへの通知(失敗はログのみ)

クローズ:
- クローズ者の記録メッセージを投稿してからアーカイブする
- 権限エラー(not_authorized / restricted_action)の場合のみ管理者対応の案内を投稿
"""

import asyncio
import logging

from pydantic import BaseModel, Field
from slack_sdk.web.async_client import AsyncWebClient

from dash.constants import (
    CHANNEL_PREFIX,
    CHANNEL_TOPIC,
    ERR_ARCHIVE_PERMISSION,
    ERR_CHANNEL_SETUP,
    ERR_CODE_NAME_TAKEN,
    ERR_NAME_CREATE_FAILED,
    ERR_NAME_EMPTY,
    ORIGIN_MSG_TEXT,
)
from dash.utils import get_slack_error_code, is_permission_error, slugify
from dash.views import origin_notice_blocks, welcome_blocks, welcome_text

logger = logging.getLogger(__name__)


class ChannelRequest(BaseModel):
    """チャンネル作成リクエスト(作成モーダルの送信内容)。

    Attributes:
        raw_name: ユーザーが入力したチャンネル名
        creator_id: 作成者のユーザーID
        selected_user_ids: モーダルで選択された招待ユーザー
        purpose: チャンネルの目的(任意)
        origin_channel_id: /dash を実行したチャンネル(任意)
    """

    raw_name: str
    creator_id: str
    selected_user_ids: list[str] = Field(default_factory=list)
    purpose: str | None = None
    origin_channel_id: str | None = None

    @property
    def invite_user_ids(self) -> list[str]:
        """作成者を先頭に1回だけ含めた、重複のない招待ユーザーのリスト。"""
        return list(dict.fromkeys([self.creator_id, *self.selected_user_ids]))


class CreateResult(BaseModel):
    """チャンネル作成結果。

    Attributes:
        channel_name: 作成しようとしたチャンネル名(プレフィックス付き)
        channel_id: 作成されたチャンネルID。失敗時はNone。
        errors: モーダルのフィールドエラー(block_id -> メッセージ)
    """

    channel_name: str = ""
    channel_id: str | None = None
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.channel_id is not None


async def create_channel(client: AsyncWebClient, request: ChannelRequest) -> CreateResult:
    """チャンネル名を検証してチャンネルを作成する(ステップ1-2)。

    Args:
        client: Slack Web APIクライアント
        request: 作成リクエスト

    Returns:
        作成結果。失敗時は errors にフィールドエラーを含む。
    """
    slug = slugify(request.raw_name)
    if not slug:
        logger.info("Rejected empty channel name", extra={"raw_name": request.raw_name})
        return CreateResult(errors={"channel_name": ERR_NAME_EMPTY})

    channel_name = f"{CHANNEL_PREFIX}{slug}"

    try:
        response = await client.conversations_create(name=channel_name)
    except Exception as e:
        if get_slack_error_code(e) == ERR_CODE_NAME_TAKEN:
            logger.info("Channel name already taken: %s", channel_name)
            return CreateResult(
                channel_name=channel_name,
                errors={
                    "channel_name": (
                        f"A channel named #{channel_name} already exists. Pick a different name."
                    )
                },
            )
        logger.error("Failed to create channel %s: %s", channel_name, e)
        return CreateResult(
            channel_name=channel_name,
            errors={"channel_name": ERR_NAME_CREATE_FAILED},
        )

    channel_id: str = response["channel"]["id"]
    logger.info(
        "Created dash channel",
        extra={
            "channel_id": channel_id,
            "channel_name": channel_name,
            "creator_id": request.creator_id,
        },
    )
    return CreateResult(channel_name=channel_name, channel_id=channel_id)


async def setup_channel(client: AsyncWebClient, request: ChannelRequest, channel_id: str) -> bool:
    """作成済みチャンネルの初期設定を行う(ステップ3-5)。

    各ステップは独立しており、失敗しても後続のステップは実行する。
    1つでも失敗した場合はチャンネル内に ERR_CHANNEL_SETUP を投稿する。

    Args:
        client: Slack Web APIクライアント
        request: 作成リクエスト
        channel_id: 作成したチャンネルID

    Returns:
        すべてのステップが成功した場合はTrue
    """
    failures: list[str] = []

    calls = [client.conversations_setTopic(channel=channel_id, topic=CHANNEL_TOPIC)]
    if request.purpose:
        calls.append(client.conversations_setPurpose(channel=channel_id, purpose=request.purpose))
    results = await asyncio.gather(*calls, return_exceptions=True)
    for step, result in zip(("topic", "purpose"), results):
        if isinstance(result, BaseException):
            logger.error(
                "Failed to set channel %s: %s", step, result, extra={"channel_id": channel_id}
            )
            failures.append(step)

    invite_user_ids = request.invite_user_ids
    try:
        await client.conversations_invite(channel=channel_id, users=",".join(invite_user_ids))
    except Exception as e:
        logger.error("Failed to invite users: %s", e, extra={"channel_id": channel_id})
        failures.append("invite")

    try:
        welcome = await client.chat_postMessage(
            channel=channel_id,
            text=welcome_text(request.creator_id),
            blocks=welcome_blocks(
                request.creator_id,
                request.purpose,
                invite_user_ids,
                request.origin_channel_id,
            ),
        )
        await client.pins_add(channel=channel_id, timestamp=welcome["ts"])
    except Exception as e:
        logger.error(
            "Failed to post or pin welcome message: %s", e, extra={"channel_id": channel_id}
        )
        failures.append("welcome")

    if not failures:
        return True

    logger.warning(
        "Channel setup had issues: %s", ", ".join(failures), extra={"channel_id": channel_id}
    )
    try:
        await client.chat_postMessage(channel=channel_id, text=ERR_CHANNEL_SETUP)
    except Exception as e:
        logger.error("Failed to post setup notice: %s", e, extra={"channel_id": channel_id})
    return False


async def notify_origin_channel(
    client: AsyncWebClient,
    request: ChannelRequest,
    channel_id: str,
) -> None:
    """作成元チャンネルに新しいチャンネルを通知する(ステップ6、ベストエフォート)。"""
    if not request.origin_channel_id:
        return

    try:
        await client.chat_postMessage(
            channel=request.origin_channel_id,
            text=ORIGIN_MSG_TEXT,
            blocks=origin_notice_blocks(request.creator_id, channel_id, request.purpose),
        )
    except Exception as e:
        logger.error(
            "Failed to notify origin channel: %s",
            e,
            extra={"origin_channel_id": request.origin_channel_id, "channel_id": channel_id},
        )


async def archive_channel(client: AsyncWebClient, channel_id: str) -> bool:
    """チャンネルをアーカイブする。

    権限エラーの場合は管理者による手動アーカイブが必要である旨を投稿する。
    その他のエラーはログのみ。

    Returns:
        アーカイブに成功した場合はTrue
    """
    try:
        await client.conversations_archive(channel=channel_id)
    except Exception as e:
        logger.error("Failed to archive channel: %s", e, extra={"channel_id": channel_id})
        if is_permission_error(e):
            try:
                await client.chat_postMessage(channel=channel_id, text=ERR_ARCHIVE_PERMISSION)
            except Exception as post_error:
                logger.error(
                    "Failed to post archive permission notice: %s",
                    post_error,
                    extra={"channel_id": channel_id},
                )
        return False

    logger.info("Archived channel", extra={"channel_id": channel_id})
    return True


async def close_channel(client: AsyncWebClient, channel_id: str, user_id: str) -> bool:
    """クローズ者を記録してからチャンネルをアーカイブする。

    記録メッセージの投稿に失敗した場合はアーカイブしない。

    Args:
        client: Slack Web APIクライアント
        channel_id: 対象チャンネルID
        user_id: クローズしたユーザーID

    Returns:
        アーカイブまで成功した場合はTrue
    """
    try:
        await client.chat_postMessage(
            channel=channel_id,
            text=f"This channel was closed by <@{user_id}>",
        )
    except Exception as e:
        logger.error(
            "Failed to post close message: %s",
            e,
            extra={"channel_id": channel_id, "user_id": user_id},
        )
        return False

    return await archive_channel(client, channel_id)
