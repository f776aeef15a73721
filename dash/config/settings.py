"""
設定管理モジュール。

pydantic-settings を使用して環境変数を型安全に管理する。
os.environ の直接参照は禁止し、このモジュール経由で取得する。
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定。

    環境変数から設定を読み込み、型安全に管理する。
    単一ワークスペース運用(Bot Token + App Token)か、
    複数ワークスペース運用(OAuth: Client ID/Secret + Signing Secret)の
    いずれかが揃っていない場合は ValidationError を発生させる。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    slack_bot_token: str | None = Field(
        default=None,
        pattern=r"^xoxb-.+$",
        description="Slack Bot token (must start with xoxb-)",
    )
    slack_app_token: str | None = Field(
        default=None,
        pattern=r"^xapp-.+$",
        description="Slack App token for Socket Mode (must start with xapp-)",
    )
    slack_signing_secret: str | None = Field(
        default=None,
        description="Slack signing secret (HTTP mode)",
    )
    slack_client_id: str | None = Field(
        default=None,
        description="Slack OAuth client ID (multi-workspace installs)",
    )
    slack_client_secret: str | None = Field(
        default=None,
        description="Slack OAuth client secret (multi-workspace installs)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL (installation store)",
    )
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key for AI summaries (optional)",
    )
    openai_model: str = Field(
        default="gpt-5-mini",
        description="OpenAI model used for channel summaries",
    )
    directory_cache_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        description="TTL of the per-user dash channel directory cache",
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="HTTP port (OAuth mode only)",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    @property
    def oauth_enabled(self) -> bool:
        """OAuth(複数ワークスペース)モードが有効かどうかを返す。"""
        return bool(self.slack_client_id and self.slack_client_secret)

    @model_validator(mode="after")
    def _check_credentials(self) -> "Settings":
        """起動モードに必要な認証情報が揃っていることを検証する。"""
        if self.oauth_enabled:
            if not self.slack_signing_secret:
                msg = "SLACK_SIGNING_SECRET is required when OAuth is enabled"
                raise ValueError(msg)
            return self
        if not self.slack_bot_token or not self.slack_app_token:
            msg = "SLACK_BOT_TOKEN and SLACK_APP_TOKEN are required without OAuth settings"
            raise ValueError(msg)
        return self


@lru_cache
def get_settings() -> Settings:
    """Settingsインスタンスをキャッシュして返す。

    アプリケーション全体で同一のSettingsインスタンスを共有するために使用する。

    Returns:
        Settings: キャッシュされた設定インスタンス
    """
    return Settings()
