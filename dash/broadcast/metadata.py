"""
ブロードキャストモーダルのメタデータ。

モーダルの private_metadata に、ソースチャンネルIDと
AI要約時に解決した表示名のマップを JSON で保持する。
旧形式(チャンネルIDの文字列そのもの)も読み取れる。
"""

from pydantic import BaseModel, ConfigDict, Field


class BroadcastMetadata(BaseModel):
    """ブロードキャストモーダルに紐づくメタデータ。

    Attributes:
        channel_id: クローズ対象(ソース)のチャンネルID
        user_names: ユーザーID -> 表示名(AI要約の生成後のみ)
    """

    channel_id: str = Field(..., alias="channelId")
    user_names: dict[str, str] | None = Field(default=None, alias="userNames")

    model_config = ConfigDict(populate_by_name=True)

    def encode(self) -> str:
        """private_metadata 用の文字列にエンコードする。"""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def decode(cls, raw: str) -> "BroadcastMetadata":
        """private_metadata をデコードする。

        JSONオブジェクトであれば構造化メタデータとして、
        そうでなければチャンネルIDそのものとして扱う。
        """
        value = raw.strip()
        if value.startswith("{"):
            return cls.model_validate_json(value)
        return cls(channel_id=value)
