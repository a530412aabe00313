"""
年度公平性分析服務

以年度累積目標管理公平性：
- 計算 1 月至指定月份的累積夜班/週末/假日需求與每人目標
- 比較每位員工的實際累積次數與目標
- 找出應優先排班的員工
"""

import logging
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.staff import FairnessScore, Staff
from ..schemas.fairness import (
    ComprehensiveFairnessReport,
    CumulativeTarget,
    EmployeeFairnessData,
    FairnessAnalysisResult,
    FairnessDimension,
    MonthlyBreakdown,
    Recommendation,
)
from ..utils.date_utils import round_half_up
from .opportunity_enumerator import OpportunityEnumerator
from .staff_directory import list_active_staff

logger = logging.getLogger(__name__)

# 判定 behind/ahead 的容許範圍；假日機會較少，範圍較窄
STATUS_TOLERANCE = {
    FairnessDimension.NIGHT: 2,
    FairnessDimension.WEEKEND: 2,
    FairnessDimension.HOLIDAY: 1,
    FairnessDimension.HOLIDAY_ADJACENT: 1,
}

SCORE_FIELDS = {
    FairnessDimension.NIGHT: "night_shift_count",
    FairnessDimension.WEEKEND: "weekend_count",
    FairnessDimension.HOLIDAY: "holiday_count",
    FairnessDimension.HOLIDAY_ADJACENT: "holiday_adjacent_count",
}

def classify_status(diff: float, dimension: FairnessDimension) -> str:
    tolerance = STATUS_TOLERANCE[dimension]
    if diff < -tolerance:
        return "behind"
    if diff > tolerance:
        return "ahead"
    return "on_track"

class YearlyFairnessService:
    def __init__(
        self,
        db: Session,
        enumerator: Optional[OpportunityEnumerator] = None,
        department: Optional[str] = None,
    ):
        self.db = db
        self.department = department or settings.FAIRNESS_DEPARTMENT
        self.enumerator = enumerator or OpportunityEnumerator(db)

    def calculate_cumulative_target(
        self,
        clinic_id: int,
        year: int,
        month: int,
        dimension: FairnessDimension,
    ) -> CumulativeTarget:
        """
        累積目標計算（1 月到指定月份）

        Args:
            clinic_id: 診所 ID
            year: 年
            month: 月 (1~12)
            dimension: 公平性面向

        Returns:
            CumulativeTarget: 累積機會日、所需人次、每人目標與逐月明細
        """
        total_shifts = 0
        total_needs = 0
        breakdown: List[MonthlyBreakdown] = []

        for summary in self.enumerator.summarize_cumulative(clinic_id, year, month, dimension):
            total_shifts += summary.total_opportunities
            total_needs += summary.total_required_slots
            breakdown.append(
                MonthlyBreakdown(
                    month=summary.month,
                    shifts=summary.total_opportunities,
                    needs=summary.total_required_slots,
                )
            )

        active_employees = len(list_active_staff(self.db, clinic_id, self.department))
        target_per_employee = total_needs / active_employees if active_employees > 0 else 0

        return CumulativeTarget(
            year=year,
            month=month,
            dimension=dimension,
            total_shifts=total_shifts,
            total_needs=total_needs,
            active_employees=active_employees,
            target_per_employee=round_half_up(target_per_employee, 2),
            breakdown=breakdown,
        )

    def _cumulative_counts(self, staff_ids: List[int], year: int, month: int, dimension: FairnessDimension) -> Dict[int, int]:
        field = SCORE_FIELDS[dimension]
        counts = {staff_id: 0 for staff_id in staff_ids}
        if not staff_ids:
            return counts

        rows = (
            self.db.query(FairnessScore)
            .filter(
                FairnessScore.staff_id.in_(staff_ids),
                FairnessScore.year == year,
                FairnessScore.month <= month,
            )
            .all()
        )
        for row in rows:
            counts[row.staff_id] += getattr(row, field) or 0
        return counts

    def get_dimension_fairness(
        self,
        clinic_id: int,
        year: int,
        month: int,
        dimension: FairnessDimension,
    ) -> FairnessAnalysisResult:
        if dimension not in SCORE_FIELDS:
            raise ValueError(f"年度分析不支援此面向: {dimension}")

        cumulative_target = self.calculate_cumulative_target(clinic_id, year, month, dimension)
        target = cumulative_target.target_per_employee

        staff_list: List[Staff] = list_active_staff(self.db, clinic_id, self.department)
        counts = self._cumulative_counts([s.id for s in staff_list], year, month, dimension)

        employees: Dict[int, EmployeeFairnessData] = {}
        for staff in staff_list:
            current_count = counts[staff.id]
            diff = current_count - target
            employees[staff.id] = EmployeeFairnessData(
                staff_id=staff.id,
                name=staff.name,
                current_count=current_count,
                target=target,
                diff=round_half_up(diff, 2),
                priority=diff,  # 越負越優先
                status=classify_status(diff, dimension),
            )

        return FairnessAnalysisResult(
            year=year,
            month=month,
            dimension=dimension,
            cumulative_target=cumulative_target,
            employees=employees,
        )

    def get_night_shift_fairness(self, clinic_id: int, year: int, month: int) -> FairnessAnalysisResult:
        return self.get_dimension_fairness(clinic_id, year, month, FairnessDimension.NIGHT)

    def get_weekend_work_fairness(self, clinic_id: int, year: int, month: int) -> FairnessAnalysisResult:
        return self.get_dimension_fairness(clinic_id, year, month, FairnessDimension.WEEKEND)

    def get_holiday_work_fairness(self, clinic_id: int, year: int, month: int) -> FairnessAnalysisResult:
        return self.get_dimension_fairness(clinic_id, year, month, FairnessDimension.HOLIDAY)

    def get_holiday_adjacent_fairness(self, clinic_id: int, year: int, month: int) -> FairnessAnalysisResult:
        return self.get_dimension_fairness(clinic_id, year, month, FairnessDimension.HOLIDAY_ADJACENT)

    @staticmethod
    def _ranked(analysis: FairnessAnalysisResult, status: str, most_negative_first: bool) -> List[EmployeeFairnessData]:
        matched = [e for e in analysis.employees.values() if e.status == status]
        return sorted(matched, key=lambda e: e.priority, reverse=not most_negative_first)

    def generate_recommendations(
        self,
        night_fairness: FairnessAnalysisResult,
        weekend_fairness: FairnessAnalysisResult,
    ) -> List[Recommendation]:
        """依夜班與週末分析產生排班建議"""
        limit = settings.RECOMMENDATION_LIMIT
        recommendations: List[Recommendation] = []

        for analysis, label, prefix in (
            (night_fairness, "夜班", "night_shift"),
            (weekend_fairness, "週末", "weekend"),
        ):
            behind = self._ranked(analysis, "behind", most_negative_first=True)
            if behind:
                top = behind[:limit]
                recommendations.append(
                    Recommendation(
                        type=f"{prefix}_priority",
                        priority="high",
                        message=f"建議優先排{label}：{', '.join(e.name for e in top)}",
                        employee_ids=[e.staff_id for e in top],
                        details=f"低於累積目標 {len(behind)} 人",
                    )
                )

            ahead = self._ranked(analysis, "ahead", most_negative_first=False)
            if ahead:
                top = ahead[:limit]
                recommendations.append(
                    Recommendation(
                        type=f"{prefix}_reduce",
                        priority="medium",
                        message=f"建議減少排{label}：{', '.join(e.name for e in top)}",
                        employee_ids=[e.staff_id for e in top],
                        details=f"超過累積目標 {len(ahead)} 人",
                    )
                )

        # 公平性達成
        total_employees = len(night_fairness.employees)
        night_on_track = sum(1 for e in night_fairness.employees.values() if e.status == "on_track")
        if total_employees > 0 and night_on_track / total_employees > 0.8:
            recommendations.append(
                Recommendation(
                    type="achievement",
                    priority="info",
                    message=f"夜班公平性良好！（{night_on_track}/{total_employees} 人在合理範圍）",
                    employee_ids=[],
                )
            )

        return recommendations

    def get_comprehensive_fairness_report(self, clinic_id: int, year: int, month: int) -> ComprehensiveFairnessReport:
        night_shift = self.get_night_shift_fairness(clinic_id, year, month)
        weekend_work = self.get_weekend_work_fairness(clinic_id, year, month)
        holiday_work = self.get_holiday_work_fairness(clinic_id, year, month)
        holiday_adjacent = self.get_holiday_adjacent_fairness(clinic_id, year, month)

        logger.info(f"診所 {clinic_id} {year}-{month:02d} 年度公平性報告已產生")
        return ComprehensiveFairnessReport(
            year=year,
            month=month,
            night_shift=night_shift,
            weekend_work=weekend_work,
            holiday_work=holiday_work,
            holiday_adjacent=holiday_adjacent,
            recommendations=self.generate_recommendations(night_shift, weekend_work),
        )
