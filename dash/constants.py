"""
定数定義モジュール。

チャンネル命名規則、ユーザー向け文言、ボタンのラベルなどを定義する。
CREATOR_MSG_TEXT は固定メッセージのピン留めを通じて作成者判定に使われるため、
既存チャンネルとの互換性を保つ目的で変更してはならない。
"""

# チャンネル設定
CHANNEL_PREFIX = "-"
CHANNEL_TOPIC = (
    "Temporary channel created by the Dash app. Use the buttons in the pinned message to close."
)

# 作成者判定用の固定文言 ("<@USER> created this temporary channel.")
CREATOR_MSG_TEXT = "created this temporary channel."
LEGACY_CREATOR_MSG_TEXT = "Temporary channel created by"

ORIGIN_MSG_TEXT = "A new dash channel was created from this conversation."

# ラベル
LABEL_CREATE = "Create a temporary channel"
LABEL_CREATE_SHORT = "New temp channel"
LABEL_CLOSE = "Close Channel"
LABEL_BROADCAST_CLOSE = "Broadcast & Close"
LABEL_AI_SUMMARY = "Generate AI summary"

# App Home
APP_HOME_HEADING = "Dash: Temporary channels"
APP_HOME_DESCRIPTION = (
    "Quickly spin up a temporary channel with the right people. \n\n"
    "To create one, type `/dash` in any channel, or use the button below."
)
HOME_CREATED_HEADING = "Dash channels you created"
HOME_CREATED_EMPTY = "_You haven't created any dash channels yet._"
HOME_MEMBER_HEADING = "Other dash channels you're a member of"
HOME_MEMBER_EMPTY = "_You're not a member of any other dash channels._"

# バリデーションエラー
ERR_NAME_EMPTY = "Channel name must contain at least one letter or number."
ERR_NAME_CREATE_FAILED = "Failed to create channel. Please try again."
ERR_SUMMARY_PENDING = "Wait for the AI summary to finish, then submit again."
ERR_DESTINATION_REQUIRED = "Pick a channel to share the outcome in."

# エラーメッセージ
ERR_ARCHIVE_PERMISSION = (
    "I don't have permission to archive this channel. "
    "A workspace admin will need to archive it manually."
)
ERR_CHANNEL_SETUP = (
    "There was an issue setting up this channel fully. "
    "Some users may need to be invited manually."
)
ERR_NOT_CREATOR = "Only the channel creator can close this channel."
ERR_VERIFY_CREATOR = "Unable to verify channel creator. Please try again."

# AI要約
AI_SUMMARY_LOADING = "Generating a summary of this channel..."
AI_SUMMARY_EMPTY = "There are no messages in this channel to summarise yet."
AI_SUMMARY_NO_API_KEY = (
    "AI summaries are not configured for this workspace. Please contact your Dash admin."
)
AI_SUMMARY_FAILED = "Couldn't generate a summary. Try again or write the outcome manually."

# Slackエラーコード
PERMISSION_ERROR_CODES = frozenset({"not_authorized", "restricted_action"})
ERR_CODE_NAME_TAKEN = "name_taken"
ERR_CODE_ALREADY_IN_CHANNEL = "already_in_channel"
