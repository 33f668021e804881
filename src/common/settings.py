"""
どこで: `common.settings`
何を: 探索エンジンの環境変数（`PRF_*`）を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, env_str


@dataclass
class _Settings:
    # ワーカプール
    WORKERS: int | None = None  # None = os.cpu_count()
    USE_PROCESSES: bool = True
    RESULT_TIMEOUT: float = 1.0

    # シェイプ変異
    MUTATION_RETRY_LIMIT: int = 1000

    # Misc
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - bool は `env_bool`、int は `env_int`、float は `env_float` を使用。
    - 一部は下限丸めを適用。
    """
    # ワーカプール（下限 1）
    _settings.WORKERS = env_int("PRF_WORKERS", None, min_value=1)
    _settings.USE_PROCESSES = env_bool("PRF_USE_PROCESSES", True)
    _settings.RESULT_TIMEOUT = env_float("PRF_RESULT_TIMEOUT", 1.0, min_value=0.01) or 1.0

    # シェイプ変異
    _settings.MUTATION_RETRY_LIMIT = env_int("PRF_MUTATION_RETRY_LIMIT", 1000, min_value=1) or 1000

    # Misc
    _settings.LOG_LEVEL = env_str("PRF_LOG_LEVEL", "INFO").upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
