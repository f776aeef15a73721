"""
App Home のボタンアクションID解析モジュール。

App Home のボタンは action_id に対象チャンネルIDを埋め込む
(例: home_close_C123)。境界で一度だけ (動詞, チャンネルID) に分解し、
ハンドラはこの組でディスパッチする。
"""

import re
from enum import Enum
from typing import NamedTuple

HOME_ACTION_PATTERN = re.compile(r"^home_(jump|broadcast_close|close)_([A-Z0-9]+)$")


class HomeVerb(str, Enum):
    """App Home のチャンネル操作。"""

    JUMP = "jump"
    BROADCAST_CLOSE = "broadcast_close"
    CLOSE = "close"


class HomeAction(NamedTuple):
    verb: HomeVerb
    channel_id: str


def parse_home_action(action_id: str) -> HomeAction | None:
    """action_id を (動詞, チャンネルID) に分解する。

    Args:
        action_id: ボタンの action_id

    Returns:
        解析結果。App Home のチャンネル操作でなければNone。
    """
    match = HOME_ACTION_PATTERN.match(action_id)
    if match is None:
        return None
    return HomeAction(HomeVerb(match.group(1)), match.group(2))
