"""
AI要約モジュール。

チャンネルの会話を OpenAI Chat Completions API で要約する。
プロンプトにはSlackのメンション記法を含めず、表示名に置き換えたテキストを渡す。
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from openai import AsyncOpenAI
from slack_sdk.web.async_client import AsyncWebClient

from dash.models import ChannelMessage

logger = logging.getLogger(__name__)

SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_COMPLETION_TOKENS = 1024
BULLET_MARKER = "- "

SYSTEM_PROMPT = f"""You summarise the outcome of a temporary Slack channel about to be closed.
Given the messages from the channel, write 3-8 bullet points covering only:
- Decisions that were made
- Action items that were agreed, with their owners
- Important outcomes or conclusions

Do not comment on the channel itself (who joined, that it was created or closed, greetings).
Write in neutral past tense, in plain text without markdown formatting.
Start every bullet point with "{BULLET_MARKER}".
Be factual and concise. Do not invent information that is not present in the messages."""


class ApiKeyMissingError(Exception):
    """OpenAI APIキーが設定されていない。"""


class EmptySummaryError(Exception):
    """OpenAI が空の応答を返した。"""


def build_user_prompt(messages: Iterable[ChannelMessage]) -> str:
    """要約対象メッセージを "名前: 本文" の行に整形したユーザープロンプトを返す。"""
    formatted = "\n".join(f"{message.user}: {message.text}" for message in messages)
    return (
        "Here are the messages from the channel:\n\n"
        f"{formatted}\n\n"
        "Please summarise the key outcomes and decisions from this conversation."
    )


class Summarizer:
    """チャンネル会話の要約器。

    APIキーが未設定でもインスタンスは作成でき、要約を要求した時点で
    ApiKeyMissingError を送出する。

    Attributes:
        _api_key: OpenAI APIキー
        _model: 使用するモデル名
        _client: AsyncOpenAIクライアント(遅延生成)
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Summarizerを初期化する。

        Args:
            api_key: OpenAI APIキー(未設定ならNone)
            model: 使用するモデル名
            client: AsyncOpenAIクライアント(テスト用に注入可能)
        """
        self._api_key = api_key
        self._model = model
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ApiKeyMissingError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def generate_summary(self, messages: list[ChannelMessage]) -> str:
        """会話の要約を生成する。

        Args:
            messages: 表示名解決済みのメッセージ(時系列順)

        Returns:
            前後の空白を除いた要約テキスト

        Raises:
            ApiKeyMissingError: APIキーが未設定の場合
            EmptySummaryError: 応答に本文がない場合
        """
        client = self._get_client()

        logger.info(
            "Calling OpenAI API",
            extra={"model": self._model, "message_count": len(messages)},
        )
        response = await client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(messages)},
            ],
            max_completion_tokens=SUMMARY_MAX_COMPLETION_TOKENS,
            temperature=SUMMARY_TEMPERATURE,
        )

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptySummaryError("OpenAI returned an empty response")
        return content.strip()


def display_name_from_user(user: dict[str, Any], fallback: str) -> str:
    """users.info の user から表示名を選ぶ(display_name -> real_name -> ID)。"""
    profile = user.get("profile") or {}
    return (
        profile.get("display_name")
        or profile.get("real_name")
        or user.get("real_name")
        or fallback
    )


async def resolve_user_names(client: AsyncWebClient, user_ids: Iterable[str]) -> dict[str, str]:
    """ユーザーIDごとの表示名を並列に取得する。

    取得に失敗したユーザーはIDをそのまま表示名とする。

    Args:
        client: Slack Web APIクライアント
        user_ids: 対象ユーザーID

    Returns:
        ユーザーID -> 表示名
    """
    ids = sorted(set(user_ids))
    results = await asyncio.gather(
        *(client.users_info(user=user_id) for user_id in ids),
        return_exceptions=True,
    )

    names: dict[str, str] = {}
    for user_id, result in zip(ids, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning("Failed to resolve user name: %s", result, extra={"user_id": user_id})
            names[user_id] = user_id
            continue
        names[user_id] = display_name_from_user(result.get("user") or {}, user_id)
    return names
