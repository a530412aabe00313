"""
時區工具模組
提供診所所在時區的時間處理功能
"""

import pytz
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.config import settings

CLINIC_TZ = pytz.timezone(settings.TIMEZONE)

def now(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    返回當前時間，預設使用診所時區

    Args:
        tz: 時區，如果為 None 則使用診所時區

    Returns:
        datetime: 當前時間（不帶時區資訊）
    """
    if tz is None:
        return datetime.now(CLINIC_TZ).replace(tzinfo=None)
    return datetime.now(tz)

def today() -> date:
    """返回診所時區的今天日期"""
    return now().date()

def utc_now() -> datetime:
    """
    返回 UTC 時間

    Returns:
        datetime: UTC 時間
    """
    return datetime.now(pytz.UTC).replace(tzinfo=None)

def current_year_month() -> Tuple[int, int]:
    """返回診所時區的 (年, 月)"""
    current = today()
    return current.year, current.month

def get_timezone_info() -> dict:
    """
    獲取時區資訊

    Returns:
        dict: 包含時區資訊的字典
    """
    clinic_time = now()
    utc_time = utc_now()
    time_diff = clinic_time - utc_time

    return {
        "clinic_time": clinic_time,
        "utc_time": utc_time,
        "timezone": settings.TIMEZONE,
        "time_difference_hours": round(time_diff.total_seconds() / 3600, 2),
    }
