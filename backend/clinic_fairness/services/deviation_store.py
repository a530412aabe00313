"""
公平性偏差值存取

偏差值由排班流程維護，本模組只負責讀取，不假設其更新方式與正負號意義。
"""

from typing import Dict, Protocol
from sqlalchemy.orm import Session

from ..models.staff import Staff
from ..schemas.fairness import FairnessDimension

class DeviationStore(Protocol):
    def get(self, staff_id: int, dimension: FairnessDimension) -> float:
        ...

class StaffDeviationStore:
    """從 Staff 表的 fairness_score_* 欄位讀取偏差值"""

    DIMENSION_COLUMNS: Dict[FairnessDimension, str] = {
        FairnessDimension.TOTAL_DAYS: "fairness_score_total_days",
        FairnessDimension.NIGHT: "fairness_score_night",
        FairnessDimension.WEEKEND: "fairness_score_weekend",
        FairnessDimension.HOLIDAY: "fairness_score_holiday",
        FairnessDimension.HOLIDAY_ADJACENT: "fairness_score_holiday_adjacent",
    }

    def __init__(self, db: Session):
        self.db = db

    def get(self, staff_id: int, dimension: FairnessDimension) -> float:
        staff = self.db.query(Staff).filter(Staff.id == staff_id).first()
        if staff is None:
            return 0.0
        value = getattr(staff, self.DIMENSION_COLUMNS[dimension])
        return float(value or 0.0)
