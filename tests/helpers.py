"""
テスト用のヘルパー関数。
"""

from typing import Any

from slack_sdk.errors import SlackApiError

BOT_USER_ID = "UBOT"


def slack_error(code: str) -> SlackApiError:
    """指定したエラーコードを持つ SlackApiError を作成する。"""
    return SlackApiError(f"The request failed: {code}", response={"ok": False, "error": code})


def creator_pin(creator_id: str, author_id: str = BOT_USER_ID) -> dict[str, Any]:
    """ウェルカムメッセージのピン留めアイテムを作成する。"""
    return {
        "type": "message",
        "message": {
            "user": author_id,
            "text": f"<@{creator_id}> created this temporary channel.",
        },
    }
