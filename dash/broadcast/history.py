"""
チャンネル履歴の取得と、要約プロンプト用の整形を行うモジュール。
"""

import logging
from collections.abc import Iterable
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient

from dash.models import ChannelMessage

logger = logging.getLogger(__name__)

MAX_PAGES = 1
MESSAGES_PER_PAGE = 200
MAX_PROMPT_MESSAGES = 100
MAX_CHARS_PER_MESSAGE = 500
TRUNCATION_SUFFIX = "..."


async def fetch_channel_messages(client: AsyncWebClient, channel_id: str) -> list[dict[str, Any]]:
    """チャンネルの直近の履歴を時系列順(古い順)で返す。

    conversations.history は新しい順に返すため、取得後に反転する。
    取得するのは最大 MAX_PAGES ページまで。

    Args:
        client: Slack Web APIクライアント
        channel_id: 対象チャンネルID

    Returns:
        生のメッセージ辞書のリスト
    """
    messages: list[dict[str, Any]] = []
    cursor: str | None = None
    page = 0

    while True:
        response = await client.conversations_history(
            channel=channel_id,
            limit=MESSAGES_PER_PAGE,
            cursor=cursor,
        )
        messages.extend(response.get("messages") or [])
        page += 1

        cursor = (response.get("response_metadata") or {}).get("next_cursor") or None
        if not cursor or page >= MAX_PAGES:
            break

    logger.debug("Fetched %d messages", len(messages), extra={"channel_id": channel_id})
    messages.reverse()
    return messages


def truncate_text(text: str, limit: int = MAX_CHARS_PER_MESSAGE) -> str:
    """limit 文字を超える本文を末尾 "..." 付きで limit 文字に切り詰める。"""
    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def format_messages_for_prompt(raw_messages: Iterable[dict[str, Any]]) -> list[ChannelMessage]:
    """生のメッセージを要約プロンプト用に整形する。

    - subtype付き(参加通知などのシステムメッセージ)を除外
    - 投稿者または本文がないものを除外
    - 本文を MAX_CHARS_PER_MESSAGE 文字に切り詰め
    - 直近 MAX_PROMPT_MESSAGES 件のみ残す
    """
    messages = [
        ChannelMessage(user=message["user"], text=truncate_text(message["text"]))
        for message in raw_messages
        if message.get("user") and message.get("text") and not message.get("subtype")
    ]
    return messages[-MAX_PROMPT_MESSAGES:]
