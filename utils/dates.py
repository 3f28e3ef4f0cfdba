from datetime import datetime, timezone


def utc_now() -> datetime:
    """현재 UTC 시각 (DB 저장 규칙에 맞춰 tzinfo 없는 naive 값)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
