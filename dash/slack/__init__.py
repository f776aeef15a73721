"""
Slackモジュール。

Slack Botの起動、ハンドラ、App Home のアクション解析を提供する。
"""

from dash.slack.actions import HomeAction, HomeVerb, parse_home_action
from dash.slack.app import DashBot, create_app, register_handlers
from dash.slack.context import AppContext, build_app_context

__all__ = [
    "AppContext",
    "DashBot",
    "HomeAction",
    "HomeVerb",
    "build_app_context",
    "create_app",
    "parse_home_action",
    "register_handlers",
]
