"""
ユーティリティモジュール。

テキスト処理とSlack APIエラー判定の純粋関数を提供する。
"""

from dash.utils.slack_errors import get_slack_error_code, is_permission_error
from dash.utils.text import (
    USER_MENTION_PATTERN,
    extract_user_ids,
    parse_user_ids,
    resolve_names_in_messages,
    restore_user_mentions,
    slugify,
)

__all__ = [
    "USER_MENTION_PATTERN",
    "extract_user_ids",
    "get_slack_error_code",
    "is_permission_error",
    "parse_user_ids",
    "resolve_names_in_messages",
    "restore_user_mentions",
    "slugify",
]
