"""
テキスト/識別子ユーティリティモジュール。

チャンネル名のスラッグ化、メンションからのユーザーID抽出、
表示名とメンションの相互変換を行う純粋関数を提供する。
"""

import re
from collections.abc import Iterable, Mapping

from dash.models import ChannelMessage

# <@U123> / <@U123|alice> 形式のメンション
USER_MENTION_PATTERN = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>")

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s_-]")
_SEPARATOR_RUNS = re.compile(r"[\s_]+")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(name: str) -> str:
    """自由入力のテキストをチャンネル名用のスラッグに変換する。

    英数字を含まない入力の場合は空文字列を返す(呼び出し側でバリデーションに使う)。

    Args:
        name: ユーザーが入力したチャンネル名

    Returns:
        小文字英数字と単一ハイフンのみからなるスラッグ
    """
    slug = name.lower().strip()
    slug = _DISALLOWED_CHARS.sub("", slug)
    slug = _SEPARATOR_RUNS.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


def parse_user_ids(text: str) -> list[str]:
    """テキスト中のメンションからユーザーIDを出現順に抽出する。

    重複は除去しない。不正な形式のメンション(例: <@invalid>)は無視する。

    Args:
        text: 検索対象のテキスト

    Returns:
        ユーザーIDのリスト
    """
    return USER_MENTION_PATTERN.findall(text)


def extract_user_ids(messages: Iterable[ChannelMessage]) -> set[str]:
    """メッセージの投稿者と本文中のメンションに含まれるユーザーIDの集合を返す。"""
    user_ids: set[str] = set()
    for message in messages:
        user_ids.add(message.user)
        user_ids.update(parse_user_ids(message.text))
    return user_ids


def resolve_names_in_messages(
    messages: Iterable[ChannelMessage],
    names: Mapping[str, str],
) -> list[ChannelMessage]:
    """投稿者IDと本文中のメンションを表示名に置き換える。

    マッピングがないIDはそのまま残す(メンションの括弧は外す)。
    結果はプロンプト入力用であり、Slack上での表示は想定しない。

    Args:
        messages: 対象メッセージ
        names: ユーザーID -> 表示名

    Returns:
        置き換え後のメッセージ
    """

    def replace_mention(match: re.Match[str]) -> str:
        user_id = match.group(1)
        return names.get(user_id, user_id)

    return [
        ChannelMessage(
            user=names.get(message.user, message.user),
            text=USER_MENTION_PATTERN.sub(replace_mention, message.text),
        )
        for message in messages
    ]


def restore_user_mentions(text: str, names: Mapping[str, str]) -> str:
    """表示名をSlackのメンション形式に戻す。

    長い名前から順に置き換えるため、"sam" と "sam.smith" が両方ある場合でも
    "sam.smith" の内部が部分的に置換されることはない。
    単語境界に接していない名前は復元されない。

    Args:
        text: 表示名を含むテキスト
        names: ユーザーID -> 表示名

    Returns:
        メンションに置き換えたテキスト
    """
    mentions = {name: f"<@{user_id}>" for user_id, name in names.items() if name}
    if not mentions:
        return text

    ordered = sorted(mentions, key=len, reverse=True)
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(name) for name in ordered) + r")\b")
    return pattern.sub(lambda match: mentions[match.group(0)], text)
