"""
Broadcast & Close モジュール。

チャンネル履歴の取得、AI要約、結果のブロードキャストとクローズを提供する。
"""

from dash.broadcast.metadata import BroadcastMetadata
from dash.broadcast.summarizer import ApiKeyMissingError, EmptySummaryError, Summarizer
from dash.broadcast.workflow import (
    BroadcastRequest,
    broadcast_and_close,
    generate_ai_summary,
    open_broadcast_modal,
    selected_destination,
    summarize_channel,
)

__all__ = [
    "ApiKeyMissingError",
    "BroadcastMetadata",
    "BroadcastRequest",
    "EmptySummaryError",
    "Summarizer",
    "broadcast_and_close",
    "generate_ai_summary",
    "open_broadcast_modal",
    "selected_destination",
    "summarize_channel",
]
