import logging
from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from ..models.leave import Holiday
from ..schemas.fairness import FairnessDimension, OpportunitySummary
from ..utils.date_utils import clip_to_window, holiday_bridge_dates, month_range, saturdays_between
from .requirement_resolver import RequirementResolver

logger = logging.getLogger(__name__)

class OpportunityEnumerator:
    """
    列出某個公平性面向在指定月份的「機會日」並加總所需人次

    - weekend: 所有週六（可依申請期間裁切）
    - night: 醫師班表有夜診的日期
    - holiday: 假日表中的日期
    - holiday_adjacent: 週一假日的前一個週五、週五假日的下一個週一
    - total_days: 所有有醫師班表的日期
    """

    def __init__(self, db: Session, resolver: Optional[RequirementResolver] = None):
        self.db = db
        self.resolver = resolver or RequirementResolver(db)

    def holidays_between(self, clinic_id: int, start: date, end: date) -> List[date]:
        rows = (
            self.db.query(Holiday.date)
            .filter(
                Holiday.clinic_id == clinic_id,
                Holiday.date >= start,
                Holiday.date <= end,
            )
            .distinct()
            .all()
        )
        return sorted({row[0] for row in rows})

    def enumerate_range(
        self,
        clinic_id: int,
        start: date,
        end: date,
        dimension: FairnessDimension,
        window: Optional[Tuple[date, date]] = None,
    ) -> List[date]:
        if dimension == FairnessDimension.WEEKEND:
            return clip_to_window(saturdays_between(start, end), window)
        if dimension == FairnessDimension.NIGHT:
            return self.resolver.roster_dates(clinic_id, start, end, night_only=True)
        if dimension == FairnessDimension.HOLIDAY:
            return self.holidays_between(clinic_id, start, end)
        if dimension == FairnessDimension.HOLIDAY_ADJACENT:
            # 相鄰日可能落在月份之外，仍計入該月
            return holiday_bridge_dates(self.holidays_between(clinic_id, start, end))
        if dimension == FairnessDimension.TOTAL_DAYS:
            return self.resolver.roster_dates(clinic_id, start, end)
        raise ValueError(f"未知的公平性面向: {dimension}")

    def enumerate_dates(
        self,
        clinic_id: int,
        year: int,
        month: int,
        dimension: FairnessDimension,
        window: Optional[Tuple[date, date]] = None,
    ) -> List[date]:
        start, end = month_range(year, month)
        return self.enumerate_range(clinic_id, start, end, dimension, window)

    def summarize(
        self,
        clinic_id: int,
        year: int,
        month: int,
        dimension: FairnessDimension,
        category: Optional[str] = None,
        window: Optional[Tuple[date, date]] = None,
    ) -> OpportunitySummary:
        dates = self.enumerate_dates(clinic_id, year, month, dimension, window)
        total_required_slots = sum(self.resolver.required_slots(clinic_id, d, category) for d in dates)

        logger.debug(
            f"[opportunity] clinic={clinic_id} {year}-{month:02d} dimension={dimension.value} "
            f"category={category} opportunities={len(dates)} slots={total_required_slots}"
        )
        return OpportunitySummary(
            dimension=dimension,
            year=year,
            month=month,
            category=category,
            dates=dates,
            total_opportunities=len(dates),
            total_required_slots=total_required_slots,
        )

    def summarize_cumulative(
        self,
        clinic_id: int,
        year: int,
        up_to_month: int,
        dimension: FairnessDimension,
        category: Optional[str] = None,
    ) -> List[OpportunitySummary]:
        """1 月到 up_to_month 每個月的機會日摘要"""
        return [
            self.summarize(clinic_id, year, m, dimension, category)
            for m in range(1, up_to_month + 1)
        ]
