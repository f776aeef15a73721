"""
Slackイベントハンドラモジュール。

/dash コマンド、モーダル送信、ボタンアクション、App Home、
インストール状態のイベントを処理する。
ハンドラの引数は slack-bolt が名前で注入する(ack, body, view, command, event,
action, client, context)。共有の依存関係は context["deps"] から取得する。
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient

from dash.broadcast import (
    BroadcastMetadata,
    BroadcastRequest,
    broadcast_and_close,
    generate_ai_summary,
    open_broadcast_modal,
    selected_destination,
)
from dash.channels import (
    ChannelRequest,
    CreatorCheck,
    close_channel,
    create_channel,
    notify_origin_channel,
    setup_channel,
    verify_creator,
)
from dash.constants import (
    ERR_DESTINATION_REQUIRED,
    ERR_NOT_CREATOR,
    ERR_SUMMARY_PENDING,
    ERR_VERIFY_CREATOR,
)
from dash.models import ChannelDirectory
from dash.slack.actions import HomeVerb, parse_home_action
from dash.slack.context import AppContext, get_deps
from dash.utils import parse_user_ids, restore_user_mentions
from dash.views import create_channel_modal, home_view

logger = logging.getLogger(__name__)

# 型エイリアス
AckFunction = Callable[..., Awaitable[None]]
HomeActionHandler = Callable[
    [AsyncWebClient, AppContext, dict[str, Any], str, str | None], Awaitable[None]
]


def _input_value(values: dict[str, Any], block_id: str, action_id: str) -> dict[str, Any]:
    return (values.get(block_id) or {}).get(action_id) or {}


def read_channel_request(body: dict[str, Any], view: dict[str, Any]) -> ChannelRequest:
    """作成モーダルの送信内容を ChannelRequest に変換する。"""
    values = (view.get("state") or {}).get("values") or {}
    purpose = _input_value(values, "purpose", "purpose_input").get("value") or ""
    return ChannelRequest(
        raw_name=_input_value(values, "channel_name", "channel_name_input").get("value") or "",
        creator_id=body["user"]["id"],
        selected_user_ids=(
            _input_value(values, "invite_users", "invite_users_input").get("selected_users") or []
        ),
        purpose=purpose.strip() or None,
        origin_channel_id=view.get("private_metadata") or None,
    )


async def handle_dash_command(
    ack: AckFunction,
    command: dict[str, Any],
    client: AsyncWebClient,
) -> None:
    """スラッシュコマンド /dash を処理する。

    即座にackを返し、チャンネル作成モーダルを開く。
    実行者と、引数でメンションされたユーザーを招待欄に入れておき、
    実行したチャンネルを作成元として記録する。

    Args:
        ack: 即座に応答するためのack関数
        command: スラッシュコマンドのデータ
        client: Slack Web APIクライアント
    """
    # 即座にackを返す(3秒以内の応答要件)
    await ack()

    user_id = command.get("user_id", "")
    preselected = list(dict.fromkeys([user_id, *parse_user_ids(command.get("text") or "")]))

    logger.info(
        "Received /dash command",
        extra={"user_id": user_id, "channel_id": command.get("channel_id")},
    )

    try:
        await client.views_open(
            trigger_id=command["trigger_id"],
            view=create_channel_modal(preselected, command.get("channel_id")),
        )
    except Exception as e:
        logger.error("Failed to open create channel modal: %s", e, extra={"user_id": user_id})


async def handle_create_submission(
    ack: AckFunction,
    body: dict[str, Any],
    view: dict[str, Any],
    client: AsyncWebClient,
) -> None:
    """チャンネル作成モーダルの送信を処理する。

    名前の検証とチャンネル作成が失敗した場合はフィールドエラーでackし、
    モーダルを開いたままにする。作成に成功した時点でackし、
    初期設定と作成元への通知を続けて行う。
    """
    request = read_channel_request(body, view)
    result = await create_channel(client, request)
    if result.channel_id is None:
        await ack(response_action="errors", errors=result.errors)
        return

    await ack()
    await setup_channel(client, request, result.channel_id)
    await notify_origin_channel(client, request, result.channel_id)


async def handle_close_action(
    ack: AckFunction,
    body: dict[str, Any],
    client: AsyncWebClient,
    context: dict[str, Any],
) -> None:
    """チャンネル内の Close Channel ボタンを処理する。"""
    await ack()

    channel_id = (body.get("channel") or {}).get("id")
    if not channel_id:
        return

    user_id = body["user"]["id"]
    if await close_channel(client, channel_id, user_id):
        get_deps(context).directory.invalidate(user_id, context.get("team_id"))


async def handle_broadcast_action(
    ack: AckFunction,
    body: dict[str, Any],
    client: AsyncWebClient,
) -> None:
    """チャンネル内の Broadcast & Close ボタンを処理する。

    ボタンの value に作成元チャンネルがあれば、投稿先の初期値にする。
    """
    await ack()

    channel_id = (body.get("channel") or {}).get("id")
    if not channel_id:
        return

    actions = body.get("actions") or [{}]
    origin_channel_id = actions[0].get("value") or None

    try:
        await open_broadcast_modal(client, body["trigger_id"], channel_id, origin_channel_id)
    except Exception as e:
        logger.error("Failed to open broadcast modal: %s", e, extra={"channel_id": channel_id})


async def handle_generate_ai_summary(
    ack: AckFunction,
    body: dict[str, Any],
    client: AsyncWebClient,
    context: dict[str, Any],
) -> None:
    """ブロードキャストモーダル内の AI要約ボタンを処理する。"""
    await ack()

    try:
        await generate_ai_summary(client, get_deps(context).summarizer, body["view"])
    except Exception:
        logger.exception("Failed to update broadcast modal with AI summary")


async def handle_broadcast_submission(
    ack: AckFunction,
    body: dict[str, Any],
    view: dict[str, Any],
    client: AsyncWebClient,
    context: dict[str, Any],
) -> None:
    """ブロードキャストモーダルの送信を処理する。

    結果欄の表示名は、メタデータに保持した名前マップでメンションに戻す。
    AI要約の生成中(結果欄がない状態)の送信はフィールドエラーで拒否する。
    """
    values = (view.get("state") or {}).get("values") or {}
    outcome_state = (values.get("outcome") or {}).get("outcome_input")
    destination = selected_destination(view)

    if outcome_state is None:
        await ack(response_action="errors", errors={"destination_channel": ERR_SUMMARY_PENDING})
        return
    if not destination:
        await ack(
            response_action="errors",
            errors={"destination_channel": ERR_DESTINATION_REQUIRED},
        )
        return

    await ack()

    metadata = BroadcastMetadata.decode(view.get("private_metadata") or "")
    user_id = body["user"]["id"]
    request = BroadcastRequest(
        source_channel_id=metadata.channel_id,
        destination_channel_id=destination,
        outcome=restore_user_mentions(outcome_state.get("value") or "", metadata.user_names or {}),
        user_id=user_id,
    )
    if await broadcast_and_close(client, request):
        get_deps(context).directory.invalidate(user_id, context.get("team_id"))


async def publish_home_view(
    client: AsyncWebClient,
    deps: AppContext,
    user_id: str,
    team_id: str | None = None,
) -> None:
    """ユーザーの App Home を描画する。

    チャンネル一覧の取得に失敗した場合は空の一覧で描画する
    (失敗結果はキャッシュされないため、次回の表示で再取得される)。
    """
    try:
        directory = await deps.directory.get_directory(client, user_id, team_id)
    except Exception:
        logger.exception("Failed to fetch dash channels for home view", extra={"user_id": user_id})
        directory = ChannelDirectory()

    await client.views_publish(user_id=user_id, view=home_view(directory))


async def handle_app_home_opened(
    event: dict[str, Any],
    client: AsyncWebClient,
    context: dict[str, Any],
) -> None:
    """app_home_opened イベントを処理する。"""
    if event.get("tab", "home") != "home":
        return

    try:
        await publish_home_view(client, get_deps(context), event["user"], context.get("team_id"))
    except Exception:
        logger.exception("Failed to publish app home", extra={"user_id": event.get("user")})


async def handle_home_create(
    ack: AckFunction,
    body: dict[str, Any],
    client: AsyncWebClient,
) -> None:
    """App Home の作成ボタンを処理する。"""
    await ack()

    try:
        await client.views_open(
            trigger_id=body["trigger_id"],
            view=create_channel_modal([body["user"]["id"]]),
        )
    except Exception as e:
        logger.error("Failed to open modal from home: %s", e)


async def _home_jump(
    client: AsyncWebClient,
    deps: AppContext,
    body: dict[str, Any],
    channel_id: str,
    team_id: str | None,
) -> None:
    # URLボタンのため ack 以外は不要
    logger.debug("Jump to channel", extra={"channel_id": channel_id})


async def _authorize_home_close(
    client: AsyncWebClient,
    deps: AppContext,
    channel_id: str,
    user_id: str,
    team_id: str | None,
) -> bool:
    """App Home からのクローズ操作が作成者によるものか確認する。

    作成者でない場合と確認に失敗した場合は、エフェメラルで拒否を伝えてFalseを返す。
    """
    check = await verify_creator(client, deps.bot_identity, channel_id, user_id, team_id)
    if check is CreatorCheck.AUTHORIZED:
        return True

    text = ERR_NOT_CREATOR if check is CreatorCheck.NOT_CREATOR else ERR_VERIFY_CREATOR
    try:
        await client.chat_postEphemeral(channel=channel_id, user=user_id, text=text)
    except Exception as e:
        logger.error("Failed to post close denial: %s", e, extra={"channel_id": channel_id})
    return False


async def _home_broadcast_close(
    client: AsyncWebClient,
    deps: AppContext,
    body: dict[str, Any],
    channel_id: str,
    team_id: str | None,
) -> None:
    if not await _authorize_home_close(client, deps, channel_id, body["user"]["id"], team_id):
        return

    try:
        await open_broadcast_modal(client, body["trigger_id"], channel_id)
    except Exception as e:
        logger.error("Failed to open broadcast modal from home: %s", e)


async def _home_close(
    client: AsyncWebClient,
    deps: AppContext,
    body: dict[str, Any],
    channel_id: str,
    team_id: str | None,
) -> None:
    """App Home からのクローズ。作成者であることを確認してから閉じる。

    作成者の確認に失敗した場合も拒否する。
    """
    user_id = body["user"]["id"]
    if not await _authorize_home_close(client, deps, channel_id, user_id, team_id):
        return

    await close_channel(client, channel_id, user_id)

    # クローズしたチャンネルを一覧から消すために再描画する
    deps.directory.invalidate(user_id, team_id)
    try:
        await publish_home_view(client, deps, user_id, team_id)
    except Exception:
        logger.exception("Failed to refresh home view after close", extra={"user_id": user_id})


HOME_ACTION_HANDLERS: dict[HomeVerb, HomeActionHandler] = {
    HomeVerb.JUMP: _home_jump,
    HomeVerb.BROADCAST_CLOSE: _home_broadcast_close,
    HomeVerb.CLOSE: _home_close,
}


async def handle_home_action(
    ack: AckFunction,
    body: dict[str, Any],
    action: dict[str, Any],
    client: AsyncWebClient,
    context: dict[str, Any],
) -> None:
    """App Home のチャンネル操作ボタンを処理する。

    action_id を (動詞, チャンネルID) に分解し、対応する処理にディスパッチする。
    """
    await ack()

    parsed = parse_home_action(action.get("action_id", ""))
    if parsed is None:
        logger.warning("Unknown home action", extra={"action_id": action.get("action_id")})
        return

    handler = HOME_ACTION_HANDLERS[parsed.verb]
    await handler(client, get_deps(context), body, parsed.channel_id, context.get("team_id"))


async def _delete_installation(context: dict[str, Any]) -> None:
    store = get_deps(context).installation_store
    if store is None:
        return
    await store.delete(
        context.get("enterprise_id"),
        context.get("team_id"),
        bool(context.get("is_enterprise_install")),
    )


async def handle_app_uninstalled(context: dict[str, Any]) -> None:
    """app_uninstalled イベントでインストール情報を削除する。"""
    logger.info("App uninstalled", extra={"team_id": context.get("team_id")})
    await _delete_installation(context)


async def handle_tokens_revoked(event: dict[str, Any], context: dict[str, Any]) -> None:
    """tokens_revoked イベントでボットトークンが失効した場合にインストール情報を削除する。"""
    revoked_bots = (event.get("tokens") or {}).get("bot") or []
    if not revoked_bots:
        return
    logger.info("Bot tokens revoked", extra={"team_id": context.get("team_id")})
    await _delete_installation(context)
