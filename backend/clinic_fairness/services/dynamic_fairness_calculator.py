"""
動態公平性休假篩選

依診所設定，對夜班、週末、假日、假日前後與總出勤日各面向計算每位員工
在該月至少需出勤的次數，判斷新的休假申請是否仍在可申請範圍內。

計算方式（每個面向）：
1. 找出員工類別與同類別在職人數
2. 加總該月機會日上該類別所需人次
3. 基準出勤次數 = 所需人次 / 同類別人數
4. 套用偏差值並四捨五入得到至少需出勤次數
5. 週末與總出勤日以「人次」比較，其餘面向以「天數」比較
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..schemas.fairness import (
    SLOT_DIMENSIONS,
    EffectiveFairnessSettings,
    FairnessCheckDetails,
    FairnessCheckResult,
    FairnessDimension,
)
from ..utils.date_utils import is_next_to_holiday, is_saturday, round_half_up
from .deviation_store import DeviationStore, StaffDeviationStore
from .fairness_settings_service import get_fairness_settings, is_dimension_enabled
from .leave_period_service import list_consumed_off_dates, resolve_application_window
from .opportunity_enumerator import OpportunityEnumerator
from .requirement_resolver import RequirementResolver
from .staff_directory import count_active_in_category, get_staff

logger = logging.getLogger(__name__)

DIMENSION_LABELS = {
    FairnessDimension.TOTAL_DAYS: "總出勤日",
    FairnessDimension.WEEKEND: "週末",
    FairnessDimension.NIGHT: "夜班",
    FairnessDimension.HOLIDAY: "假日",
    FairnessDimension.HOLIDAY_ADJACENT: "假日前後",
}

STAFF_NOT_FOUND = "STAFF_NOT_FOUND"
LEAVE_PERIOD_NOT_FOUND = "LEAVE_PERIOD_NOT_FOUND"

def exceeded_code(dimension: FairnessDimension) -> str:
    return f"{dimension.value.upper()}_FAIRNESS_EXCEEDED"

class DimensionFairnessChecker:
    """單一面向的休假額度檢查"""

    def __init__(
        self,
        db: Session,
        dimension: FairnessDimension,
        resolver: Optional[RequirementResolver] = None,
        enumerator: Optional[OpportunityEnumerator] = None,
        deviation_store: Optional[DeviationStore] = None,
        department: Optional[str] = None,
    ):
        self.db = db
        self.dimension = dimension
        self.department = department or settings.FAIRNESS_DEPARTMENT
        self.resolver = resolver or RequirementResolver(db, self.department)
        self.enumerator = enumerator or OpportunityEnumerator(db, self.resolver)
        self.deviation_store = deviation_store or StaffDeviationStore(db)

    @property
    def is_slot_based(self) -> bool:
        return self.dimension in SLOT_DIMENSIONS

    def check(
        self,
        clinic_id: int,
        staff_id: int,
        request_date: date,
        year: int,
        month: int,
        consumed_dates: Iterable[date],
        fairness_settings: Optional[EffectiveFairnessSettings] = None,
    ) -> FairnessCheckResult:
        """
        consumed_dates 為此員工在此面向已使用的日期（已確認/待審 + 尚未送出的選擇），
        request_date 一律計入。
        """
        if fairness_settings is None:
            fairness_settings = get_fairness_settings(self.db, clinic_id)
        if not is_dimension_enabled(fairness_settings, self.dimension):
            return FairnessCheckResult(allowed=True, dimension=self.dimension)

        staff = get_staff(self.db, staff_id)
        if staff is None:
            logger.warning(f"[fairness] staff={staff_id} dimension={self.dimension.value} date={request_date} 找不到員工")
            return FairnessCheckResult(
                allowed=False,
                code=STAFF_NOT_FOUND,
                reason="找不到員工資料",
                dimension=self.dimension,
            )

        category = staff.category_name
        if not category:
            return FairnessCheckResult(allowed=True, dimension=self.dimension)

        total_staff = count_active_in_category(self.db, clinic_id, category, self.department)
        if total_staff == 0:
            return FairnessCheckResult(allowed=True, dimension=self.dimension)

        summary = self.enumerator.summarize(clinic_id, year, month, self.dimension, category)

        base_requirement = summary.total_required_slots / total_staff
        deviation = self.deviation_store.get(staff_id, self.dimension)
        adjusted_requirement = max(0, int(round_half_up(base_requirement + deviation)))

        dates = sorted(set(consumed_dates) | {request_date})
        if self.is_slot_based:
            max_allowed = max(0, summary.total_required_slots - adjusted_requirement)
            used = sum(self.resolver.required_slots(clinic_id, d, category) for d in dates)
            rejected = used >= max_allowed
        else:
            max_allowed = max(0, summary.total_opportunities - adjusted_requirement)
            used = len(dates)
            rejected = used > max_allowed

        details = FairnessCheckDetails(
            category=category,
            total_staff=total_staff,
            required_slots=summary.total_required_slots,
            total_opportunities=summary.total_opportunities,
            base_requirement=round_half_up(base_requirement, 2),
            deviation=deviation,
            adjusted_requirement=adjusted_requirement,
            granularity="slot" if self.is_slot_based else "day",
            used=used,
            max_allowed=max_allowed,
            consumed_dates=dates,
        )

        logger.debug(
            f"[fairness] staff={staff_id} dimension={self.dimension.value} date={request_date} "
            f"base={details.base_requirement} adjusted={adjusted_requirement} used={used} max={max_allowed}"
        )

        if rejected:
            label = DIMENSION_LABELS[self.dimension]
            unit = "人次" if self.is_slot_based else "天"
            if summary.total_opportunities == 0:
                reason = f"{label}公平性超出上限：{category} 本月沒有{label}機會日，無法申請此類休假"
            else:
                reason = (
                    f"{label}公平性超出上限：{category} 本月最多可申請 {max_allowed}{unit}"
                    f"（含本次已使用 {used}{unit}）"
                )
            return FairnessCheckResult(
                allowed=False,
                code=exceeded_code(self.dimension),
                reason=reason,
                dimension=self.dimension,
                details=details,
            )

        return FairnessCheckResult(allowed=True, dimension=self.dimension, details=details)

@dataclass(frozen=True)
class DimensionRule:
    """派送規則：申請日符合 applies 且設定啟用時，執行該面向檢查"""
    dimension: FairnessDimension
    applies: Callable[[date], bool]
    enabled: bool

class DynamicFairnessCalculator:
    """依申請日期類型，依固定順序執行適用的面向檢查，遇到第一個拒絕即停止"""

    def __init__(
        self,
        db: Session,
        deviation_store: Optional[DeviationStore] = None,
        department: Optional[str] = None,
    ):
        self.db = db
        self.department = department or settings.FAIRNESS_DEPARTMENT
        self.resolver = RequirementResolver(db, self.department)
        self.enumerator = OpportunityEnumerator(db, self.resolver)
        self.deviation_store = deviation_store or StaffDeviationStore(db)

    def checker(self, dimension: FairnessDimension) -> DimensionFairnessChecker:
        return DimensionFairnessChecker(
            self.db,
            dimension,
            resolver=self.resolver,
            enumerator=self.enumerator,
            deviation_store=self.deviation_store,
            department=self.department,
        )

    def dimension_rules(
        self,
        clinic_id: int,
        fairness_settings: EffectiveFairnessSettings,
        holidays: Set[date],
    ) -> List[DimensionRule]:
        """派送順序：總出勤日 → 週末 → 夜班 → 假日 → 假日前後"""
        return [
            DimensionRule(FairnessDimension.TOTAL_DAYS, lambda d: True, True),
            DimensionRule(
                FairnessDimension.WEEKEND,
                is_saturday,
                fairness_settings.enable_weekend_fairness,
            ),
            DimensionRule(
                FairnessDimension.NIGHT,
                lambda d: self.resolver.has_night_shift(clinic_id, d),
                fairness_settings.enable_night_shift_fairness,
            ),
            DimensionRule(
                FairnessDimension.HOLIDAY,
                lambda d: d in holidays,
                fairness_settings.enable_holiday_fairness,
            ),
            DimensionRule(
                FairnessDimension.HOLIDAY_ADJACENT,
                lambda d: is_next_to_holiday(d, holidays),
                fairness_settings.enable_holiday_adjacent_fairness,
            ),
        ]

    def check_dynamic_fairness(
        self,
        clinic_id: int,
        staff_id: int,
        request_date: date,
        year: int,
        month: int,
        pending_selections: Optional[Iterable[date]] = None,
    ) -> FairnessCheckResult:
        # 每次檢查重新讀取班表與範本
        self.resolver.clear_cache()
        fairness_settings = get_fairness_settings(self.db, clinic_id)
        if fairness_settings.is_default:
            logger.info(f"[fairness] staff={staff_id} date={request_date} 診所 {clinic_id} 未設定公平性，直接允許")
            return FairnessCheckResult(allowed=True)

        if get_staff(self.db, staff_id) is None:
            logger.warning(f"[fairness] staff={staff_id} date={request_date} 找不到員工")
            return FairnessCheckResult(allowed=False, code=STAFF_NOT_FOUND, reason="找不到員工資料")

        window = resolve_application_window(self.db, clinic_id, year, month, self.resolver)
        if window is None:
            logger.warning(f"[fairness] staff={staff_id} date={request_date} {year}-{month:02d} 未設定請假期間")
            return FairnessCheckResult(
                allowed=False,
                code=LEAVE_PERIOD_NOT_FOUND,
                reason=f"{year} 年 {month} 月尚未設定請假申請期間",
            )

        all_dates = set(list_consumed_off_dates(self.db, staff_id, window))
        all_dates.update(pending_selections or [])

        candidate_dates = all_dates | {request_date}
        holidays = set(
            self.enumerator.holidays_between(
                clinic_id,
                min(candidate_dates) - timedelta(days=1),
                max(candidate_dates) + timedelta(days=1),
            )
        )

        checked: List[FairnessDimension] = []
        for rule in self.dimension_rules(clinic_id, fairness_settings, holidays):
            if not rule.enabled or not rule.applies(request_date):
                continue

            consumed = [d for d in all_dates if rule.applies(d)]
            result = self.checker(rule.dimension).check(
                clinic_id,
                staff_id,
                request_date,
                year,
                month,
                consumed,
                fairness_settings=fairness_settings,
            )
            checked.append(rule.dimension)

            if not result.allowed:
                logger.info(
                    f"[fairness] staff={staff_id} dimension={rule.dimension.value} date={request_date} 拒絕: {result.reason}"
                )
                result.checked_dimensions = checked
                return result

        logger.info(
            f"[fairness] staff={staff_id} date={request_date} 通過 {[d.value for d in checked]}"
        )
        return FairnessCheckResult(allowed=True, checked_dimensions=checked)

def check_dynamic_fairness(
    db: Session,
    clinic_id: int,
    staff_id: int,
    request_date: date,
    year: int,
    month: int,
    pending_selections: Optional[Iterable[date]] = None,
) -> FairnessCheckResult:
    return DynamicFairnessCalculator(db).check_dynamic_fairness(
        clinic_id, staff_id, request_date, year, month, pending_selections
    )
