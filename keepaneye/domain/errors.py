"""ドメイン固有の例外クラス"""


class KeepAnEyeError(Exception):
    """スケジュールエンジンの基底例外"""

    pass


class NotFoundError(KeepAnEyeError):
    """参照されたテンプレート・スケジュールが存在しない（HTTP 404 相当）"""

    pass


class InvalidRecurrenceError(KeepAnEyeError):
    """曜日・時刻・頻度の値が不正（HTTP 400 相当）"""

    pass


class StoreError(KeepAnEyeError):
    """永続化層の一時的なエラー（HTTP 500 相当、操作ごとリトライ可能）"""

    pass
