"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STORE_FILENAME = ".notification.localstore.json"


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("NOTIFY_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class NotifySettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Bot 相关配置 ----
    bot_app_id: str = Field(
        default="",
        validation_alias=AliasChoices("BOT_ID", "CLIENT_ID", "bot_app_id"),
        description="Bot 应用 ID（对应 Azure Bot 注册的 clientId）",
    )
    bot_access_token: Optional[str] = Field(
        default=None,
        description="调用 Connector REST 接口时使用的 Bearer token，由宿主负责获取",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 存储 ----
    storage_dir: str = Field(default="./", description="会话引用文件所在目录")
    running_on_azure: bool = Field(
        default=False,
        validation_alias=AliasChoices("RUNNING_ON_AZURE", "running_on_azure"),
        description="运行在 Azure 上时，存储目录改用 $TEMP",
    )
    notification_store_filename: str = Field(
        default=DEFAULT_STORE_FILENAME,
        validation_alias=AliasChoices(
            "TEAMSFX_NOTIFICATION_STORE_FILENAME", "notification_store_filename"
        ),
        description="会话引用存储文件名",
    )

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    broadcast_page_size: int = Field(default=100, ge=1, description="广播时每页读取的安装数")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


def resolve_storage_dir(cfg: "NotifySettings") -> Path:
    """返回会话引用文件所在目录。

    Azure 上工作目录只读，因此改用 $TEMP（未设置时退回当前目录）。
    """
    if cfg.running_on_azure:
        return Path(os.environ.get("TEMP") or "./").resolve()
    return Path(cfg.storage_dir).resolve()


settings = NotifySettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = NotifySettings
