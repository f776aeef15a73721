"""
AI要約モジュールの単体テスト。

OpenAIクライアントはモックに差し替える。
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from dash.broadcast.summarizer import (
    BULLET_MARKER,
    SYSTEM_PROMPT,
    ApiKeyMissingError,
    EmptySummaryError,
    Summarizer,
    build_user_prompt,
    display_name_from_user,
    resolve_user_names,
)
from dash.models import ChannelMessage
from tests.helpers import slack_error


def completion(content: str | None) -> MagicMock:
    """chat.completions.create のレスポンスを作成する。"""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestBuildUserPrompt:
    """build_user_prompt のテスト。"""

    def test_formats_name_and_text_lines(self) -> None:
        """「名前: 本文」の行を並べる。"""
        prompt = build_user_prompt(
            [ChannelMessage(user="alice", text="ship it"), ChannelMessage(user="bob", text="ok")]
        )

        assert prompt.startswith("Here are the messages from the channel:\n\n")
        assert "alice: ship it\nbob: ok" in prompt

    def test_system_prompt_requires_bullet_marker(self) -> None:
        """システムプロンプトは箇条書きの記号を指定する。"""
        assert f'"{BULLET_MARKER}"' in SYSTEM_PROMPT


class TestSummarizer:
    """Summarizer のテスト。"""

    @pytest.fixture
    def openai_client(self) -> MagicMock:
        """モックされたAsyncOpenAIクライアント。"""
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=completion("  - Decided X\n"))
        return client

    @pytest.mark.asyncio
    async def test_generate_summary(self, openai_client: MagicMock) -> None:
        """モデルの応答を前後の空白を除いて返す。"""
        summarizer = Summarizer(api_key="sk-test", model="gpt-5-mini", client=openai_client)

        summary = await summarizer.generate_summary([ChannelMessage(user="alice", text="X?")])

        assert summary == "- Decided X"
        kwargs = openai_client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-5-mini"
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_completion_tokens"] == 1024
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "alice: X?" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_response_raises(
        self, openai_client: MagicMock, content: str | None
    ) -> None:
        """空の応答は EmptySummaryError。"""
        openai_client.chat.completions.create = AsyncMock(return_value=completion(content))
        summarizer = Summarizer(api_key="sk-test", model="m", client=openai_client)

        with pytest.raises(EmptySummaryError):
            await summarizer.generate_summary([ChannelMessage(user="a", text="b")])

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self) -> None:
        """APIキーが未設定なら ApiKeyMissingError。"""
        summarizer = Summarizer(api_key=None, model="m")

        assert summarizer.configured is False
        with pytest.raises(ApiKeyMissingError):
            await summarizer.generate_summary([ChannelMessage(user="a", text="b")])


class TestDisplayNames:
    """表示名解決のテスト。"""

    def test_display_name_fallback_chain(self) -> None:
        """display_name -> real_name -> ID の順に選ぶ。"""
        assert display_name_from_user({"profile": {"display_name": "al"}}, "U1") == "al"
        assert (
            display_name_from_user({"profile": {"display_name": "", "real_name": "Alice"}}, "U1")
            == "Alice"
        )
        assert display_name_from_user({}, "U1") == "U1"

    @pytest.mark.asyncio
    async def test_resolve_user_names_tolerates_failures(self, slack_client: MagicMock) -> None:
        """取得に失敗したユーザーはIDを表示名にする。"""

        async def users_info(user: str) -> dict:
            if user == "U2":
                raise slack_error("user_not_found")
            return {"user": {"profile": {"display_name": "alice"}}}

        slack_client.users_info = AsyncMock(side_effect=users_info)

        names = await resolve_user_names(slack_client, ["U1", "U2", "U1"])

        assert names == {"U1": "alice", "U2": "U2"}
        assert slack_client.users_info.call_count == 2
