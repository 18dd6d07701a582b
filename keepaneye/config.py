"""設定管理 - 環境変数の型安全な読み込み"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_STORE_BACKENDS = ("firestore", "memory")


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""
    schedule_store: str = "firestore"
    project_id: str = ""
    default_horizon_weeks: int = 8
    max_horizon_weeks: int = 26
    insert_batch_size: int = 1000

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む"""
        load_dotenv()

        schedule_store = os.getenv("SCHEDULE_STORE", "firestore").lower()
        if schedule_store not in _STORE_BACKENDS:
            raise ValueError(
                f"SCHEDULE_STORE must be one of {_STORE_BACKENDS}, got {schedule_store!r}"
            )

        project_id = os.getenv("PROJECT_ID", "")
        if schedule_store == "firestore" and not project_id:
            raise ValueError("PROJECT_ID is not set in environment")

        default_weeks = _int_env("DEFAULT_HORIZON_WEEKS", 8)
        max_weeks = _int_env("MAX_HORIZON_WEEKS", 26)
        if not 1 <= default_weeks <= max_weeks:
            raise ValueError(
                "DEFAULT_HORIZON_WEEKS must be between 1 and MAX_HORIZON_WEEKS"
            )

        batch_size = _int_env("INSERT_BATCH_SIZE", 1000)
        if batch_size < 1:
            raise ValueError("INSERT_BATCH_SIZE must be positive")

        return cls(
            schedule_store=schedule_store,
            project_id=project_id,
            default_horizon_weeks=default_weeks,
            max_horizon_weeks=max_weeks,
            insert_batch_size=batch_size,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
