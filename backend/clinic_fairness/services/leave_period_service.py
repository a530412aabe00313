import logging
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.leave import ACTIVE_LEAVE_STATUSES, LeaveApplication, LeavePeriod, LeaveType, StaffAssignment
from ..schemas.fairness import ApplicationWindow
from .requirement_resolver import RequirementResolver

logger = logging.getLogger(__name__)

def get_leave_period(db: Session, clinic_id: int, year: int, month: int) -> Optional[LeavePeriod]:
    return (
        db.query(LeavePeriod)
        .filter(
            LeavePeriod.clinic_id == clinic_id,
            LeavePeriod.year == year,
            LeavePeriod.month == month,
        )
        .first()
    )

def last_assignment_date(db: Session, clinic_id: int) -> Optional[date]:
    return (
        db.query(func.max(StaffAssignment.date))
        .filter(StaffAssignment.clinic_id == clinic_id)
        .scalar()
    )

def resolve_application_window(
    db: Session,
    clinic_id: int,
    year: int,
    month: int,
    resolver: Optional[RequirementResolver] = None,
) -> Optional[ApplicationWindow]:
    """
    計算實際可評估的申請期間

    以請假期間為基礎：
    - 開始日不早於「最後一筆已排班日期 + 1 天」
    - 結束日不晚於「最後一天醫師班表」
    找不到請假期間時回傳 None。
    """
    period = get_leave_period(db, clinic_id, year, month)
    if period is None:
        return None

    start_date = period.start_date
    end_date = period.end_date

    last_assigned = last_assignment_date(db, clinic_id)
    if last_assigned is not None and last_assigned + timedelta(days=1) > start_date:
        start_date = last_assigned + timedelta(days=1)

    resolver = resolver or RequirementResolver(db)
    last_roster = resolver.last_roster_date(clinic_id)
    if last_roster is not None and last_roster < end_date:
        end_date = last_roster

    if start_date != period.start_date or end_date != period.end_date:
        logger.debug(
            f"[window] clinic={clinic_id} {year}-{month:02d} 申請期間 {period.start_date}~{period.end_date} "
            f"裁切為 {start_date}~{end_date}"
        )

    return ApplicationWindow(
        start_date=start_date,
        end_date=end_date,
        configured_start_date=period.start_date,
        configured_end_date=period.end_date,
    )

def list_consumed_off_dates(db: Session, staff_id: int, window: ApplicationWindow) -> List[date]:
    """申請期間內已確認或待審的休假日期"""
    rows = (
        db.query(LeaveApplication.date)
        .filter(
            LeaveApplication.staff_id == staff_id,
            LeaveApplication.leave_type == LeaveType.OFF.value,
            LeaveApplication.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveApplication.date >= window.start_date,
            LeaveApplication.date <= window.end_date,
        )
        .all()
    )
    return sorted({row[0] for row in rows})
