"""
ドメインの型定義モジュール。

Pydanticモデルとして実装する:
- ChannelMessage: プロンプト入力用に整形したチャンネルメッセージ
- DashChannel: Dashが管理するチャンネルの参照
- ChannelDirectory: ユーザーごとの「作成したチャンネル/参加中のチャンネル」の分類
"""

from pydantic import BaseModel, Field


class ChannelMessage(BaseModel):
    """チャンネル履歴の1メッセージ。

    Attributes:
        user: 投稿者のユーザーID(名前解決後は表示名)
        text: 本文
    """

    user: str
    text: str


class DashChannel(BaseModel):
    """Dashが管理するチャンネル。

    Attributes:
        id: SlackチャンネルID
        name: チャンネル名(CHANNEL_PREFIXで始まる)
    """

    id: str
    name: str


class ChannelDirectory(BaseModel):
    """ユーザーから見たDashチャンネルの一覧。

    Attributes:
        created: ユーザーが作成したチャンネル
        member_of: ユーザーが参加しているその他のチャンネル
    """

    created: list[DashChannel] = Field(default_factory=list)
    member_of: list[DashChannel] = Field(default_factory=list)
