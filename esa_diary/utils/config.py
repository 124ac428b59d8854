"""
配置管理模块
管理应用的所有配置信息，包括esa凭证、重试参数、会话参数、日志配置等
"""

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import ConfigMissing


class Settings(BaseSettings):
    """应用配置类"""

    # esa 凭证配置（必填）
    esa_api_token: str = ""
    esa_team_name: str = ""
    esa_api_base: str = "https://api.esa.io"

    # 网络与重试配置
    request_timeout: float = 10.0
    create_wait_seconds: float = 1.0
    retry_interval_seconds: float = 1.0
    lookup_attempts: int = Field(default=3, ge=1)

    # 会话配置
    history_limit: int = Field(default=10, ge=1)
    char_limit: int = Field(default=500, ge=1)

    # 日志配置
    log_level: str = "INFO"
    log_file: str = "logs/esa_diary.log"
    log_to_console: bool = False

    # 应用配置
    app_name: str = "Esa Diary CLI"
    app_version: str = "1.0.0"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        # .env 可能和其他工具共用，忽略无关的键
        extra = "ignore"

    def require_credentials(self) -> "Settings":
        """
        检查esa凭证是否完整

        Returns:
            配置实例本身

        Raises:
            ConfigMissing: 缺少 ESA_API_TOKEN 或 ESA_TEAM_NAME
        """
        missing = [
            name.upper()
            for name in ("esa_api_token", "esa_team_name")
            if not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigMissing(missing)
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    获取配置实例（单例模式）
    使用lru_cache确保只创建一个配置实例

    Raises:
        ConfigMissing: 凭证缺失或配置值非法
    """
    try:
        settings = Settings()
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]).upper() for err in e.errors()]
        raise ConfigMissing(fields) from e
    return settings.require_credentials()
