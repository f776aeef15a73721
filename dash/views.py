"""
Block Kit ビュー生成モジュール。

モーダル、ウェルカムメッセージ、App Home のブロックを組み立てる。
ここで使う block_id / action_id はハンドラ側の取り出し処理と対応している。
"""

from typing import Any

from dash.constants import (
    AI_SUMMARY_LOADING,
    APP_HOME_DESCRIPTION,
    APP_HOME_HEADING,
    CHANNEL_PREFIX,
    CREATOR_MSG_TEXT,
    HOME_CREATED_EMPTY,
    HOME_CREATED_HEADING,
    HOME_MEMBER_EMPTY,
    HOME_MEMBER_HEADING,
    LABEL_AI_SUMMARY,
    LABEL_BROADCAST_CLOSE,
    LABEL_CLOSE,
    LABEL_CREATE,
    LABEL_CREATE_SHORT,
)
from dash.models import ChannelDirectory, DashChannel

Block = dict[str, Any]

# callback_id / action_id
CREATE_CHANNEL_CALLBACK = "create_channel"
BROADCAST_SUBMIT_CALLBACK = "broadcast_submit"
CLOSE_CHANNEL_ACTION = "close_channel"
BROADCAST_AND_CLOSE_ACTION = "broadcast_and_close"
GENERATE_AI_SUMMARY_ACTION = "generate_ai_summary"
HOME_CREATE_ACTION = "home_create_dash"


def _plain(text: str) -> dict[str, str]:
    return {"type": "plain_text", "text": text}


def _mrkdwn(text: str) -> dict[str, str]:
    return {"type": "mrkdwn", "text": text}


def _close_confirm() -> dict[str, Any]:
    return {
        "title": _plain("Close this channel?"),
        "text": _mrkdwn("This will archive the channel. This action cannot be undone."),
        "confirm": _plain("Close it"),
        "deny": _plain("Cancel"),
    }


def create_channel_modal(
    preselected_user_ids: list[str] | None = None,
    origin_channel_id: str | None = None,
) -> dict[str, Any]:
    """チャンネル作成モーダルを返す。

    Args:
        preselected_user_ids: 招待欄に最初から入れておくユーザーID
        origin_channel_id: コマンドを実行したチャンネル(作成後の通知先)

    Returns:
        views.open に渡すビュー
    """
    invite_element: dict[str, Any] = {
        "type": "multi_users_select",
        "action_id": "invite_users_input",
        "placeholder": _plain("Select people to invite"),
    }
    if preselected_user_ids:
        invite_element["initial_users"] = preselected_user_ids

    view: dict[str, Any] = {
        "type": "modal",
        "callback_id": CREATE_CHANNEL_CALLBACK,
        "title": _plain(LABEL_CREATE_SHORT),
        "submit": _plain("Create"),
        "close": _plain("Cancel"),
        "blocks": [
            {
                "type": "input",
                "block_id": "channel_name",
                "label": _plain("Channel name"),
                "hint": _plain(f'Prefixed with "{CHANNEL_PREFIX}". Lowercase, hyphens only.'),
                "element": {
                    "type": "plain_text_input",
                    "action_id": "channel_name_input",
                    "placeholder": _plain("e.g. launch-planning"),
                },
            },
            {
                "type": "input",
                "block_id": "invite_users",
                "label": _plain("Invite people"),
                "element": invite_element,
            },
            {
                "type": "input",
                "block_id": "purpose",
                "label": _plain("Purpose"),
                "optional": True,
                "element": {
                    "type": "plain_text_input",
                    "action_id": "purpose_input",
                    "placeholder": _plain("What is this channel for?"),
                },
            },
        ],
    }
    if origin_channel_id:
        view["private_metadata"] = origin_channel_id
    return view


def welcome_text(creator_id: str) -> str:
    """ピン留めするウェルカムメッセージの本文(作成者判定に使われる)。"""
    return f"<@{creator_id}> {CREATOR_MSG_TEXT}"


def welcome_blocks(
    creator_id: str,
    purpose: str | None,
    invited_user_ids: list[str],
    origin_channel_id: str | None = None,
) -> list[Block]:
    """ウェルカムメッセージのブロックを返す。

    Broadcast & Close ボタンの value には作成元チャンネルを入れておき、
    ブロードキャスト先の初期値として使う。
    """
    user_list = ", ".join(f"<@{user_id}>" for user_id in invited_user_ids)
    purpose_line = f"\n>*Purpose:* {purpose}" if purpose else ""

    broadcast_button: dict[str, Any] = {
        "type": "button",
        "text": _plain(LABEL_BROADCAST_CLOSE),
        "action_id": BROADCAST_AND_CLOSE_ACTION,
    }
    if origin_channel_id:
        broadcast_button["value"] = origin_channel_id

    return [
        {"type": "section", "text": _mrkdwn(f"*{welcome_text(creator_id)}*{purpose_line}")},
        {"type": "section", "text": _mrkdwn(f"*Invited:* {user_list}")},
        {"type": "divider"},
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": _plain(LABEL_CLOSE),
                    "style": "danger",
                    "action_id": CLOSE_CHANNEL_ACTION,
                    "confirm": _close_confirm(),
                },
                broadcast_button,
            ],
        },
    ]


def origin_notice_blocks(creator_id: str, channel_id: str, purpose: str | None) -> list[Block]:
    """作成元チャンネルに投稿する通知のブロックを返す。"""
    blocks: list[Block] = [
        {
            "type": "section",
            "text": _mrkdwn(f"<@{creator_id}> created a new dash channel: <#{channel_id}>"),
        }
    ]
    if purpose:
        blocks.append({"type": "section", "text": _mrkdwn(f"*Purpose:* {purpose}")})
    blocks.append({"type": "context", "elements": [_mrkdwn("Created with /dash")]})
    return blocks


def broadcast_modal(
    private_metadata: str,
    default_destination: str | None = None,
    initial_outcome: str | None = None,
    loading: bool = False,
) -> dict[str, Any]:
    """Broadcast & Close モーダルを返す。

    loading=True の場合は結果欄を編集不可のプレースホルダに置き換え、
    AI要約ボタンを隠す。

    Args:
        private_metadata: エンコード済みのブロードキャストメタデータ
        default_destination: 投稿先チャンネルの初期値
        initial_outcome: 結果欄の初期値
        loading: AI要約の生成中かどうか

    Returns:
        views.open / views.update に渡すビュー
    """
    destination_element: dict[str, Any] = {
        "type": "conversations_select",
        "action_id": "destination_channel_input",
        "filter": {"include": ["public"], "exclude_bot_users": True},
        "placeholder": _plain("Select a channel"),
    }
    if default_destination:
        destination_element["initial_conversation"] = default_destination

    blocks: list[Block] = [
        {
            "type": "input",
            "block_id": "destination_channel",
            "label": _plain("Post summary to"),
            "element": destination_element,
        }
    ]

    if loading:
        blocks.append(
            {
                "type": "context",
                "block_id": "outcome_loading",
                "elements": [_mrkdwn(f":hourglass_flowing_sand: {AI_SUMMARY_LOADING}")],
            }
        )
    else:
        outcome_element: dict[str, Any] = {
            "type": "plain_text_input",
            "action_id": "outcome_input",
            "multiline": True,
            "placeholder": _plain("What was decided or accomplished?"),
        }
        if initial_outcome is not None:
            outcome_element["initial_value"] = initial_outcome
        blocks.append(
            {
                "type": "input",
                "block_id": "outcome",
                "label": _plain("Outcome / Summary"),
                "element": outcome_element,
            }
        )
        blocks.append(
            {
                "type": "actions",
                "block_id": "ai_actions",
                "elements": [
                    {
                        "type": "button",
                        "text": _plain(LABEL_AI_SUMMARY),
                        "action_id": GENERATE_AI_SUMMARY_ACTION,
                    }
                ],
            }
        )

    return {
        "type": "modal",
        "callback_id": BROADCAST_SUBMIT_CALLBACK,
        "private_metadata": private_metadata,
        "title": _plain(LABEL_BROADCAST_CLOSE),
        "submit": _plain(LABEL_BROADCAST_CLOSE),
        "close": _plain("Cancel"),
        "blocks": blocks,
    }


def broadcast_outcome_blocks(source_channel_id: str, outcome: str, user_id: str) -> list[Block]:
    """投稿先チャンネルに送る結果メッセージのブロックを返す。"""
    quoted = outcome.replace("\n", "\n>")
    return [
        {"type": "section", "text": _mrkdwn(f"<#{source_channel_id}> has wrapped up.")},
        {"type": "section", "text": _mrkdwn(f"*Outcome:*\n>{quoted}")},
        {"type": "context", "elements": [_mrkdwn(f"Closed by <@{user_id}>")]},
    ]


def _channel_section_blocks(
    title: str,
    channels: list[DashChannel],
    empty_text: str,
    show_close: bool,
) -> list[Block]:
    blocks: list[Block] = [{"type": "header", "text": _plain(title)}]

    if not channels:
        blocks.append({"type": "section", "text": _mrkdwn(empty_text)})
        return blocks

    for channel in channels:
        elements: list[dict[str, Any]] = [
            {
                "type": "button",
                "text": _plain("Jump to"),
                "url": f"https://slack.com/app_redirect?channel={channel.id}",
                "action_id": f"home_jump_{channel.id}",
            }
        ]
        if show_close:
            elements.append(
                {
                    "type": "button",
                    "text": _plain(LABEL_BROADCAST_CLOSE),
                    "action_id": f"home_broadcast_close_{channel.id}",
                    "value": channel.id,
                }
            )
            elements.append(
                {
                    "type": "button",
                    "text": _plain("Close"),
                    "style": "danger",
                    "action_id": f"home_close_{channel.id}",
                    "value": channel.id,
                    "confirm": _close_confirm(),
                }
            )
        blocks.append({"type": "section", "text": _mrkdwn(f"<#{channel.id}>")})
        blocks.append({"type": "actions", "elements": elements})

    return blocks


def home_view(directory: ChannelDirectory) -> dict[str, Any]:
    """App Home のビューを返す。"""
    blocks: list[Block] = [
        {"type": "header", "text": _plain(APP_HOME_HEADING)},
        {"type": "section", "text": _mrkdwn(APP_HOME_DESCRIPTION)},
        {"type": "divider"},
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": _plain(LABEL_CREATE),
                    "style": "primary",
                    "action_id": HOME_CREATE_ACTION,
                }
            ],
        },
        {"type": "divider"},
        *_channel_section_blocks(
            HOME_CREATED_HEADING, directory.created, HOME_CREATED_EMPTY, show_close=True
        ),
        {"type": "divider"},
        *_channel_section_blocks(
            HOME_MEMBER_HEADING, directory.member_of, HOME_MEMBER_EMPTY, show_close=False
        ),
    ]
    return {"type": "home", "blocks": blocks}
