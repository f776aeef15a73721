"""
Broadcast & Close ワークフローモジュール。

1. モーダルを開く: ソースチャンネルIDをメタデータに保持し、
   ボタンに作成元チャンネルがあれば投稿先の初期値にする
2. AI要約(任意): モーダルを読み込み中の表示に更新し、履歴を要約して結果欄に入れる。
   解決した表示名マップはメタデータに引き継ぎ、送信時にメンションへ戻す
3. 送信: 投稿先に参加 -> 結果を投稿 -> ソースにクローズ記録を投稿 -> アーカイブ
   (ブロードキャストが完了しない限りアーカイブは行わない)
"""

import logging
from typing import Any

from pydantic import BaseModel, Field
from slack_sdk.web.async_client import AsyncWebClient

from dash.broadcast.history import (
    fetch_channel_messages,
    format_messages_for_prompt,
    truncate_text,
)
from dash.broadcast.metadata import BroadcastMetadata
from dash.broadcast.summarizer import ApiKeyMissingError, Summarizer, resolve_user_names
from dash.channels.lifecycle import archive_channel
from dash.constants import (
    AI_SUMMARY_EMPTY,
    AI_SUMMARY_FAILED,
    AI_SUMMARY_NO_API_KEY,
    ERR_CODE_ALREADY_IN_CHANNEL,
)
from dash.utils import extract_user_ids, get_slack_error_code, resolve_names_in_messages
from dash.views import broadcast_modal, broadcast_outcome_blocks

logger = logging.getLogger(__name__)

# plain_text_input の initial_value の上限
OUTCOME_MAX_CHARS = 3000


class BroadcastRequest(BaseModel):
    """ブロードキャストモーダルの送信内容。

    Attributes:
        source_channel_id: クローズするチャンネル
        destination_channel_id: 結果の投稿先チャンネル
        outcome: 結果テキスト(メンション復元済み)
        user_id: 送信したユーザー
    """

    source_channel_id: str
    destination_channel_id: str
    outcome: str
    user_id: str


class SummaryResult(BaseModel):
    """AI要約の結果。

    Attributes:
        text: 結果欄に入れるテキスト(要約、または固定の案内文)
        user_names: 要約時に解決した表示名(ユーザーID -> 表示名)
    """

    text: str
    user_names: dict[str, str] = Field(default_factory=dict)


def selected_destination(view: dict[str, Any]) -> str | None:
    """モーダルの状態から選択中の投稿先チャンネルを取り出す。"""
    values = (view.get("state") or {}).get("values") or {}
    selection = (values.get("destination_channel") or {}).get("destination_channel_input") or {}
    return selection.get("selected_conversation")


async def open_broadcast_modal(
    client: AsyncWebClient,
    trigger_id: str,
    source_channel_id: str,
    default_destination: str | None = None,
) -> None:
    """Broadcast & Close モーダルを開く。"""
    metadata = BroadcastMetadata(channel_id=source_channel_id)
    await client.views_open(
        trigger_id=trigger_id,
        view=broadcast_modal(metadata.encode(), default_destination),
    )


async def summarize_channel(
    client: AsyncWebClient,
    summarizer: Summarizer,
    channel_id: str,
) -> SummaryResult:
    """チャンネル履歴を要約する。

    どのような失敗でも固定の案内文を返し、例外は送出しない。

    Args:
        client: Slack Web APIクライアント
        summarizer: 要約器
        channel_id: 要約対象のチャンネル

    Returns:
        要約結果
    """
    if not summarizer.configured:
        logger.warning("AI summary requested but OPENAI_API_KEY is not set")
        return SummaryResult(text=AI_SUMMARY_NO_API_KEY)

    try:
        raw_messages = await fetch_channel_messages(client, channel_id)
        messages = format_messages_for_prompt(raw_messages)
        if not messages:
            logger.info("No messages to summarise", extra={"channel_id": channel_id})
            return SummaryResult(text=AI_SUMMARY_EMPTY)

        user_names = await resolve_user_names(client, extract_user_ids(messages))
        summary = await summarizer.generate_summary(
            resolve_names_in_messages(messages, user_names)
        )
    except ApiKeyMissingError:
        logger.warning("AI summary requested but OPENAI_API_KEY is not set")
        return SummaryResult(text=AI_SUMMARY_NO_API_KEY)
    except Exception:
        logger.exception("Failed to generate AI summary", extra={"channel_id": channel_id})
        return SummaryResult(text=AI_SUMMARY_FAILED)

    return SummaryResult(text=summary, user_names=user_names)


async def generate_ai_summary(
    client: AsyncWebClient,
    summarizer: Summarizer,
    view: dict[str, Any],
) -> None:
    """モーダル内のAI要約ボタンを処理する。

    読み込み中の表示に切り替えた後、必ず結果(要約または案内文)で再描画する。
    結果での再描画に失敗した場合は AI_SUMMARY_FAILED で描画し直し、
    読み込み中のまま残さない。選択済みの投稿先は維持する。

    Args:
        client: Slack Web APIクライアント
        summarizer: 要約器
        view: アクション送信元のモーダル(body["view"])
    """
    view_id = view["id"]
    metadata = BroadcastMetadata.decode(view.get("private_metadata") or "")
    destination = selected_destination(view)

    try:
        await client.views_update(
            view_id=view_id,
            hash=view.get("hash"),
            view=broadcast_modal(metadata.encode(), destination, loading=True),
        )
    except Exception as e:
        logger.error("Failed to show AI summary loading state: %s", e, extra={"view_id": view_id})

    result = await summarize_channel(client, summarizer, metadata.channel_id)
    if result.user_names:
        metadata.user_names = result.user_names

    try:
        await client.views_update(
            view_id=view_id,
            view=broadcast_modal(
                metadata.encode(),
                destination,
                initial_outcome=truncate_text(result.text, OUTCOME_MAX_CHARS),
            ),
        )
    except Exception:
        logger.exception("Failed to show AI summary", extra={"view_id": view_id})
        await client.views_update(
            view_id=view_id,
            view=broadcast_modal(metadata.encode(), destination, initial_outcome=AI_SUMMARY_FAILED),
        )


async def join_channel(client: AsyncWebClient, channel_id: str) -> None:
    """チャンネルに参加する。既に参加済みの場合は成功として扱う。"""
    try:
        await client.conversations_join(channel=channel_id)
    except Exception as e:
        if get_slack_error_code(e) != ERR_CODE_ALREADY_IN_CHANNEL:
            raise


async def broadcast_and_close(client: AsyncWebClient, request: BroadcastRequest) -> bool:
    """結果を投稿先チャンネルに共有し、ソースチャンネルをアーカイブする。

    参加・投稿のいずれかが失敗した場合はアーカイブしない。
    アーカイブの失敗は、すでに完了したブロードキャストを取り消さない。

    Args:
        client: Slack Web APIクライアント
        request: 送信内容

    Returns:
        ブロードキャストが完了した場合はTrue(アーカイブの成否は含まない)
    """
    source = request.source_channel_id
    destination = request.destination_channel_id

    try:
        await join_channel(client, destination)

        await client.chat_postMessage(
            channel=destination,
            text=f"Dash channel <#{source}> has wrapped up. Outcome: {request.outcome}",
            blocks=broadcast_outcome_blocks(source, request.outcome, request.user_id),
        )

        info = await client.conversations_info(channel=destination)
        destination_name = (info.get("channel") or {}).get("name") or "unknown"

        await client.chat_postMessage(
            channel=source,
            text=(
                f"This channel was closed by <@{request.user_id}>. "
                f"Outcome was shared to #{destination_name}."
            ),
        )
    except Exception:
        logger.exception(
            "Failed to broadcast and close",
            extra={"source_channel_id": source, "destination_channel_id": destination},
        )
        return False

    logger.info(
        "Broadcast outcome",
        extra={"source_channel_id": source, "destination_channel_id": destination},
    )
    await archive_channel(client, source)
    return True
