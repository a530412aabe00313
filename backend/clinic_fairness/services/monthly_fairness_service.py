"""
月度公平性分數服務

依當月夜班/週末/假日次數乘上權重計算分數，與全體平均比較：
- 低於平均 × (1 - 門檻) → low，不可申請夜班/週末休假
- 高於平均 × (1 + 門檻) → high
- 其餘 → normal
"""

import logging
from typing import Dict, Optional
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.staff import FairnessScore
from ..schemas.fairness import (
    FairnessScoreData,
    FairnessWeights,
    MonthlyFairnessAnalysis,
    MonthlyOffCheck,
    MonthlyOffDetails,
)
from ..utils.date_utils import round_half_up
from .fairness_settings_service import get_fairness_settings
from .staff_directory import list_active_staff

logger = logging.getLogger(__name__)

OFF_TYPE_LABELS = {
    "night": "夜班",
    "weekend": "週末",
}

class MonthlyFairnessService:
    def __init__(self, db: Session, department: Optional[str] = None):
        self.db = db
        self.department = department or settings.FAIRNESS_DEPARTMENT

    @staticmethod
    def calculate_score(night_shift_count: int, weekend_count: int, holiday_count: int, weights: FairnessWeights) -> float:
        return (
            night_shift_count * weights.night_shift
            + weekend_count * weights.weekend
            + holiday_count * weights.holiday
        )

    def _monthly_rows(self, staff_ids, year: int, month: int) -> Dict[int, FairnessScore]:
        if not staff_ids:
            return {}
        rows = (
            self.db.query(FairnessScore)
            .filter(
                FairnessScore.staff_id.in_(staff_ids),
                FairnessScore.year == year,
                FairnessScore.month == month,
            )
            .all()
        )
        return {row.staff_id: row for row in rows}

    def get_monthly_fairness_analysis(self, clinic_id: int, year: int, month: int) -> MonthlyFairnessAnalysis:
        """
        當月所有在職員工的公平性分數

        未啟用公平性檢查時回傳空結果。
        """
        fairness_settings = get_fairness_settings(self.db, clinic_id)
        weights = fairness_settings.weights
        threshold = fairness_settings.fairness_threshold

        if not fairness_settings.enable_fairness_check:
            return MonthlyFairnessAnalysis(
                year=year,
                month=month,
                average_score=0,
                min_required=0,
                max_allowed=0,
                fairness_threshold=threshold,
                weights=weights,
                scores=[],
            )

        staff_list = list_active_staff(self.db, clinic_id, self.department)
        rows = self._monthly_rows([s.id for s in staff_list], year, month)

        raw_scores = []
        for staff in staff_list:
            row = rows.get(staff.id)
            night_shift_count = row.night_shift_count if row else 0
            weekend_count = row.weekend_count if row else 0
            holiday_count = row.holiday_count if row else 0
            total = self.calculate_score(night_shift_count, weekend_count, holiday_count, weights)
            raw_scores.append((staff, night_shift_count, weekend_count, holiday_count, total))

        average_score = sum(item[4] for item in raw_scores) / len(raw_scores) if raw_scores else 0
        min_required = average_score * (1 - threshold)
        max_allowed = average_score * (1 + threshold)

        scores = []
        for staff, night_shift_count, weekend_count, holiday_count, total in raw_scores:
            if total < min_required:
                status = "low"
            elif total > max_allowed:
                status = "high"
            else:
                status = "normal"
            scores.append(
                FairnessScoreData(
                    staff_id=staff.id,
                    staff_name=staff.name,
                    night_shift_count=night_shift_count,
                    weekend_count=weekend_count,
                    holiday_count=holiday_count,
                    total_score=total,
                    status=status,
                    can_apply_night_off=status != "low",
                    can_apply_weekend_off=status != "low",
                )
            )

        return MonthlyFairnessAnalysis(
            year=year,
            month=month,
            average_score=round_half_up(average_score, 2),
            min_required=round_half_up(min_required, 2),
            max_allowed=round_half_up(max_allowed, 2),
            fairness_threshold=threshold,
            weights=weights,
            scores=scores,
        )

    def get_staff_monthly_score(
        self,
        clinic_id: int,
        staff_id: int,
        year: int,
        month: int,
        analysis: Optional[MonthlyFairnessAnalysis] = None,
    ) -> Optional[FairnessScoreData]:
        analysis = analysis or self.get_monthly_fairness_analysis(clinic_id, year, month)
        return next((s for s in analysis.scores if s.staff_id == staff_id), None)

    def can_apply_off(self, clinic_id: int, staff_id: int, year: int, month: int, off_type: str) -> MonthlyOffCheck:
        """
        依月度分數判斷是否可申請夜班/週末休假

        Args:
            off_type: "night" 或 "weekend"
        """
        analysis = self.get_monthly_fairness_analysis(clinic_id, year, month)
        score_data = self.get_staff_monthly_score(clinic_id, staff_id, year, month, analysis)
        if score_data is None:
            # 沒有分數（例如第一個月）則不限制
            return MonthlyOffCheck(allowed=True)

        details = MonthlyOffDetails(
            my_score=score_data.total_score,
            average_score=analysis.average_score,
            min_required=analysis.min_required,
            night_shift_count=score_data.night_shift_count,
            weekend_count=score_data.weekend_count,
            holiday_count=score_data.holiday_count,
        )

        if score_data.status == "low":
            label = OFF_TYPE_LABELS.get(off_type, "夜班/週末")
            logger.info(f"員工 {staff_id} {year}-{month:02d} 月度分數 {score_data.total_score} 低於 {analysis.min_required}，不可申請{label}休假")
            return MonthlyOffCheck(
                allowed=False,
                reason="本月夜班/週末出勤不足，無法於該日期申請休假",
                details=details,
            )

        return MonthlyOffCheck(allowed=True, details=details)
