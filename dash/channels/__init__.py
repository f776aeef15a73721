"""
チャンネル管理モジュール。

作成者判定、ユーザーごとのチャンネル一覧キャッシュ、
チャンネルの作成/クローズのワークフローを提供する。
"""

from dash.channels.creator import BotIdentity, CreatorCheck, find_creator, verify_creator
from dash.channels.directory import ChannelDirectoryService, DirectoryCache, fetch_dash_channels
from dash.channels.lifecycle import (
    ChannelRequest,
    CreateResult,
    close_channel,
    create_channel,
    notify_origin_channel,
    setup_channel,
)

__all__ = [
    "BotIdentity",
    "ChannelDirectoryService",
    "ChannelRequest",
    "CreateResult",
    "CreatorCheck",
    "DirectoryCache",
    "close_channel",
    "create_channel",
    "fetch_dash_channels",
    "find_creator",
    "notify_origin_channel",
    "setup_channel",
    "verify_creator",
]
