"""Slack API エラーの判定ヘルパー。"""

from slack_sdk.errors import SlackApiError

from dash.constants import PERMISSION_ERROR_CODES


def get_slack_error_code(error: BaseException | None) -> str | None:
    """SlackApiErrorからエラーコード(例: "name_taken")を取り出す。

    SlackApiError以外の例外や、レスポンスにエラーコードがない場合はNoneを返す。

    Args:
        error: 判定対象の例外

    Returns:
        エラーコード。取得できない場合はNone。
    """
    if not isinstance(error, SlackApiError):
        return None
    response = error.response
    if response is None:
        return None
    code = response.get("error")
    return code if isinstance(code, str) else None


def is_permission_error(error: BaseException | None) -> bool:
    """アーカイブ権限不足(not_authorized / restricted_action)かどうかを返す。"""
    return get_slack_error_code(error) in PERMISSION_ERROR_CODES
