"""
執行模式設定。

以環境變數 PYREDUX_ENV 切換 production 與非 production 模式。
非 production 模式下 combine_reducers 會輸出形狀檢查的提示，
此設定只影響提示訊息，不會改變任何狀態計算結果。
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_VAR = "PYREDUX_ENV"


class Settings(BaseSettings):
    """PyRedux 的執行期設定。"""

    env: str = Field(default="development", description="執行模式")

    model_config = SettingsConfigDict(
        env_prefix="PYREDUX_",
        case_sensitive=False,
    )

    @property
    def production(self) -> bool:
        return self.env.strip().lower() == "production"


def get_settings() -> Settings:
    """
    從環境變數讀取設定。

    每次呼叫都會建立新的 Settings，因此測試可以直接修改環境變數來切換模式。

    Returns:
        Settings: 目前的設定。
    """
    return Settings()


def is_production() -> bool:
    return get_settings().production
