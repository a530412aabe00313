"""
綜合公平性分析服務

結合年度累積目標與月度分數：
- 判斷休假申請是否可行（年度 + 月度）
- 計算每位員工的排班優先順序
- 提供管理者儀表板資料
"""

import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from ..core.config import settings
from ..schemas.fairness import (
    ComprehensiveAnalysis,
    ComprehensiveFairnessReport,
    DateType,
    EmployeeFairnessData,
    MonthlyAnalysisSummary,
    MonthlyFairnessAnalysis,
    ValidationDetails,
    ValidationResult,
    YearlyAnalysis,
    YearlyDetail,
    YearlyDimensionAnalysis,
)
from ..utils.date_utils import is_saturday, is_sunday
from .fairness_settings_service import get_fairness_settings
from .monthly_fairness_service import MonthlyFairnessService
from .yearly_fairness_service import YearlyFairnessService

logger = logging.getLogger(__name__)

def get_date_type(target_date: date, has_night_shift: bool, is_holiday: bool) -> DateType:
    """日期類型：週日 > 假日 > 週六 > 夜診平日 > 一般平日"""
    if is_sunday(target_date):
        return DateType.SUNDAY
    if is_holiday:
        return DateType.HOLIDAY
    if is_saturday(target_date):
        return DateType.WEEKEND
    if has_night_shift:
        return DateType.NIGHT_WEEKDAY
    return DateType.NORMAL_WEEKDAY

def _overall_status(night: EmployeeFairnessData, weekend: EmployeeFairnessData, monthly_status: str) -> str:
    overall_status = "normal"
    if night.status == "behind" or weekend.status == "behind":
        overall_status = "high_priority"
    elif night.status == "ahead" and weekend.status == "ahead":
        overall_status = "low_priority"

    # 月度狀態優先
    if monthly_status == "low":
        overall_status = "high_priority"
    elif monthly_status == "high":
        overall_status = "low_priority"
    return overall_status

def _yearly_dimension(data: EmployeeFairnessData) -> YearlyDimensionAnalysis:
    return YearlyDimensionAnalysis(
        cumulative_target=data.target,
        current_count=data.current_count,
        diff=data.diff,
        status=data.status,
        priority=data.priority,
    )

class ComprehensiveFairnessService:
    def __init__(self, db: Session, department: Optional[str] = None):
        self.db = db
        self.department = department or settings.FAIRNESS_DEPARTMENT
        self.yearly = YearlyFairnessService(db, department=self.department)
        self.monthly = MonthlyFairnessService(db, department=self.department)

    def validate_off_application(
        self,
        clinic_id: int,
        staff_id: int,
        target_date: date,
        has_night_shift: bool,
        is_holiday: bool,
    ) -> ValidationResult:
        """
        休假申請綜合驗證

        一般平日與週日不需檢查；夜診平日比對夜班，週六與假日比對週末。
        年度落後優先於月度分數不足。
        """
        date_type = get_date_type(target_date, has_night_shift, is_holiday)
        if date_type in (DateType.NORMAL_WEEKDAY, DateType.SUNDAY):
            return ValidationResult(allowed=True, requires_fairness_check=False, date_type=date_type)

        fairness_settings = get_fairness_settings(self.db, clinic_id)
        if not fairness_settings.enable_fairness_check:
            return ValidationResult(allowed=True, requires_fairness_check=False, date_type=date_type)

        year, month = target_date.year, target_date.month
        is_night = date_type == DateType.NIGHT_WEEKDAY
        label = "夜班" if is_night else "週末"

        # 年度：只有夜診平日與週六有對應資料，假日維持 on_track
        yearly = YearlyDetail(cumulative_target=0, current_count=0, diff=0, status="on_track")
        if date_type in (DateType.NIGHT_WEEKDAY, DateType.WEEKEND):
            analysis = (
                self.yearly.get_night_shift_fairness(clinic_id, year, month)
                if is_night
                else self.yearly.get_weekend_work_fairness(clinic_id, year, month)
            )
            data = analysis.employees.get(staff_id)
            if data is not None:
                yearly = YearlyDetail(
                    cumulative_target=data.target,
                    current_count=data.current_count,
                    diff=data.diff,
                    status=data.status,
                )

        monthly = self.monthly.can_apply_off(clinic_id, staff_id, year, month, "night" if is_night else "weekend")
        details = ValidationDetails(yearly=yearly, monthly=monthly.details)

        if yearly.status == "behind":
            logger.info(f"員工 {staff_id} {target_date} {label}年度累積不足 (diff={yearly.diff})，拒絕休假")
            return ValidationResult(
                allowed=False,
                requires_fairness_check=True,
                date_type=date_type,
                reason="YEARLY_FAIRNESS_LOW",
                message=f"今年{label}出勤低於累積目標，無法於該日期申請休假",
                details=details,
            )

        if not monthly.allowed:
            return ValidationResult(
                allowed=False,
                requires_fairness_check=True,
                date_type=date_type,
                reason="MONTHLY_FAIRNESS_LOW",
                message=monthly.reason,
                details=details,
            )

        return ValidationResult(
            allowed=True,
            requires_fairness_check=True,
            date_type=date_type,
            message="可以申請",
            details=details,
        )

    def get_staff_comprehensive_analysis(
        self,
        clinic_id: int,
        staff_id: int,
        year: int,
        month: int,
        report: Optional[ComprehensiveFairnessReport] = None,
        monthly_analysis: Optional[MonthlyFairnessAnalysis] = None,
    ) -> Optional[ComprehensiveAnalysis]:
        """員工不在年度或月度母體內時回傳 None"""
        report = report or self.yearly.get_comprehensive_fairness_report(clinic_id, year, month)
        night = report.night_shift.employees.get(staff_id)
        weekend = report.weekend_work.employees.get(staff_id)
        if night is None or weekend is None:
            return None

        monthly_analysis = monthly_analysis or self.monthly.get_monthly_fairness_analysis(clinic_id, year, month)
        monthly_score = self.monthly.get_staff_monthly_score(clinic_id, staff_id, year, month, monthly_analysis)
        if monthly_score is None:
            return None

        return ComprehensiveAnalysis(
            staff_id=staff_id,
            staff_name=monthly_score.staff_name,
            year=year,
            month=month,
            yearly_analysis=YearlyAnalysis(
                night_shift=_yearly_dimension(night),
                weekend=_yearly_dimension(weekend),
            ),
            monthly_analysis=MonthlyAnalysisSummary(
                night_shift_count=monthly_score.night_shift_count,
                weekend_count=monthly_score.weekend_count,
                holiday_count=monthly_score.holiday_count,
                total_score=monthly_score.total_score,
                average_score=monthly_analysis.average_score,
                status=monthly_score.status,
            ),
            overall_status=_overall_status(night, weekend, monthly_score.status),
            can_apply_night_off=monthly_score.can_apply_night_off and night.status != "behind",
            can_apply_weekend_off=monthly_score.can_apply_weekend_off and weekend.status != "behind",
        )

    def get_all_staff_comprehensive_analysis(self, clinic_id: int, year: int, month: int) -> List[ComprehensiveAnalysis]:
        monthly_analysis = self.monthly.get_monthly_fairness_analysis(clinic_id, year, month)
        if not monthly_analysis.scores:
            return []

        report = self.yearly.get_comprehensive_fairness_report(clinic_id, year, month)
        results = []
        for score in monthly_analysis.scores:
            analysis = self.get_staff_comprehensive_analysis(
                clinic_id, score.staff_id, year, month, report=report, monthly_analysis=monthly_analysis
            )
            if analysis is not None:
                results.append(analysis)
        return results

    def get_comprehensive_fairness_report(self, clinic_id: int, year: int, month: int) -> ComprehensiveFairnessReport:
        return self.yearly.get_comprehensive_fairness_report(clinic_id, year, month)
