import logging
from datetime import date
from typing import Dict, List, NamedTuple, Optional, Tuple
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..models.doctor_schedule import DoctorCombination, DoctorSchedule, ScheduleDoctor

logger = logging.getLogger(__name__)

class RosterKey(NamedTuple):
    """當日醫師組合鍵：排序後的醫師簡稱 + 是否有夜診"""
    doctors: Tuple[str, ...]
    has_night_shift: bool

class RequirementResolver:
    """
    依當日醫師班表找出對應的人力需求範本，回傳指定類別所需人數

    只接受醫師集合與夜診旗標完全相同的範本；找不到範本的日期視為需要 0 人。
    同一個實例內會暫存查詢結果，實例應只在單一請求內使用。
    """

    def __init__(self, db: Session, department: Optional[str] = None):
        self.db = db
        self.department = department or settings.FAIRNESS_DEPARTMENT
        self._roster_cache: Dict[Tuple[int, date], List[ScheduleDoctor]] = {}
        self._combination_cache: Dict[Tuple[int, RosterKey], Optional[DoctorCombination]] = {}

    def clear_cache(self):
        self._roster_cache.clear()
        self._combination_cache.clear()

    def get_roster(self, clinic_id: int, target_date: date) -> List[ScheduleDoctor]:
        """取得當日所有出勤醫師列"""
        cache_key = (clinic_id, target_date)
        if cache_key not in self._roster_cache:
            self._roster_cache[cache_key] = (
                self.db.query(ScheduleDoctor)
                .join(DoctorSchedule, ScheduleDoctor.schedule_id == DoctorSchedule.id)
                .options(joinedload(ScheduleDoctor.doctor))
                .filter(
                    DoctorSchedule.clinic_id == clinic_id,
                    ScheduleDoctor.date == target_date,
                )
                .all()
            )
        return self._roster_cache[cache_key]

    def get_roster_key(self, clinic_id: int, target_date: date) -> Optional[RosterKey]:
        entries = self.get_roster(clinic_id, target_date)
        if not entries:
            return None
        doctors = tuple(sorted({entry.doctor.short_name for entry in entries}))
        has_night_shift = any(entry.has_night_shift for entry in entries)
        return RosterKey(doctors=doctors, has_night_shift=has_night_shift)

    def has_night_shift(self, clinic_id: int, target_date: date) -> bool:
        key = self.get_roster_key(clinic_id, target_date)
        return bool(key and key.has_night_shift)

    def find_combination(self, clinic_id: int, key: RosterKey) -> Optional[DoctorCombination]:
        """完全比對醫師集合與夜診旗標"""
        cache_key = (clinic_id, key)
        if cache_key not in self._combination_cache:
            candidates = (
                self.db.query(DoctorCombination)
                .filter(
                    DoctorCombination.clinic_id == clinic_id,
                    DoctorCombination.has_night_shift == key.has_night_shift,
                )
                .order_by(DoctorCombination.id)
                .all()
            )
            match = None
            for combination in candidates:
                if tuple(sorted(combination.doctors or [])) == key.doctors:
                    match = combination
                    break
            self._combination_cache[cache_key] = match
        return self._combination_cache[cache_key]

    @staticmethod
    def _slot_count(value) -> int:
        # 範本可能直接存人數，也可能存 {"count": n, "minRequired": m}
        if isinstance(value, dict):
            return int(value.get("count") or 0)
        return int(value or 0)

    def required_slots(self, clinic_id: int, target_date: date, category: Optional[str] = None) -> int:
        """
        指定日期該類別所需人數

        category 為 None 時回傳公平性部門內所有類別的合計。
        """
        key = self.get_roster_key(clinic_id, target_date)
        if key is None:
            return 0

        combination = self.find_combination(clinic_id, key)
        if combination is None:
            logger.debug(f"[requirement] clinic={clinic_id} date={target_date} 無對應醫師組合 {key.doctors} night={key.has_night_shift}")
            return 0

        department_slice = (combination.department_category_staff or {}).get(self.department) or {}
        if category is None:
            return sum(self._slot_count(value) for value in department_slice.values())
        return self._slot_count(department_slice.get(category, 0))

    def last_roster_date(self, clinic_id: int) -> Optional[date]:
        """已存在班表的最後一天"""
        return (
            self.db.query(ScheduleDoctor.date)
            .join(DoctorSchedule, ScheduleDoctor.schedule_id == DoctorSchedule.id)
            .filter(DoctorSchedule.clinic_id == clinic_id)
            .order_by(ScheduleDoctor.date.desc())
            .limit(1)
            .scalar()
        )

    def roster_dates(self, clinic_id: int, start: date, end: date, night_only: bool = False) -> List[date]:
        """期間內有醫師班表的日期（可只取有夜診的日期）"""
        query = (
            self.db.query(ScheduleDoctor.date)
            .join(DoctorSchedule, ScheduleDoctor.schedule_id == DoctorSchedule.id)
            .filter(
                DoctorSchedule.clinic_id == clinic_id,
                ScheduleDoctor.date >= start,
                ScheduleDoctor.date <= end,
            )
        )
        if night_only:
            query = query.filter(ScheduleDoctor.has_night_shift.is_(True))
        return sorted({row[0] for row in query.distinct().all()})
