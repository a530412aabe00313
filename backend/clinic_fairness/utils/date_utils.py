"""日期相關工具：月份範圍、星期判斷與假日前後推算"""

import calendar
import math
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Optional, Set, Tuple

MONDAY = 0
FRIDAY = 4
SATURDAY = 5
SUNDAY = 6

def month_range(year: int, month: int) -> Tuple[date, date]:
    """返回該月的第一天與最後一天"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)

def is_saturday(d: date) -> bool:
    return d.weekday() == SATURDAY

def is_sunday(d: date) -> bool:
    return d.weekday() == SUNDAY

def saturdays_between(start: date, end: date) -> List[date]:
    return [d for d in iter_days(start, end) if is_saturday(d)]

def clip_to_window(dates: Iterable[date], window: Optional[Tuple[date, date]]) -> List[date]:
    """只保留落在 window（含頭尾）內的日期；window 為 None 時不裁切"""
    if window is None:
        return list(dates)
    start, end = window
    return [d for d in dates if start <= d <= end]

def holiday_bridge_dates(holidays: Iterable[date]) -> List[date]:
    """
    假日跨週末的相鄰工作日

    假日在週一 → 前一個週五（往前 3 天）；假日在週五 → 下一個週一（往後 3 天）。
    結果去重並排序。
    """
    adjacent: Set[date] = set()
    for holiday in holidays:
        if holiday.weekday() == MONDAY:
            adjacent.add(holiday - timedelta(days=3))
        elif holiday.weekday() == FRIDAY:
            adjacent.add(holiday + timedelta(days=3))
    return sorted(adjacent)

def is_next_to_holiday(d: date, holidays: Set[date]) -> bool:
    """前一天或後一天是假日"""
    return (d - timedelta(days=1)) in holidays or (d + timedelta(days=1)) in holidays

def round_half_up(value: float, digits: int = 0) -> float:
    """四捨五入到指定小數位（.5 一律往正無限大方向進位）"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
