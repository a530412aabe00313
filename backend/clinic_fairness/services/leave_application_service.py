import logging
from datetime import date
from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.leave import ACTIVE_LEAVE_STATUSES, LeaveApplication, LeaveStatus, LeaveType
from ..models.staff import Staff
from ..schemas.leave import LeaveSubmissionResult
from ..schemas.leave import LeaveApplication as LeaveApplicationSchema
from .dynamic_fairness_calculator import DynamicFairnessCalculator
from .leave_period_service import get_leave_period
from .requirement_resolver import RequirementResolver
from .staff_directory import count_active_in_category, get_staff

logger = logging.getLogger(__name__)

class LeaveApplicationError(Exception):
    """請假申請流程錯誤"""

class StaffNotFoundError(LeaveApplicationError):
    pass

class DuplicateApplicationError(LeaveApplicationError):
    pass

class AnnualSlotExceededError(LeaveApplicationError):
    pass

def find_existing_application(db: Session, staff_id: int, target_date: date) -> Optional[LeaveApplication]:
    """同一員工同一天尚未被拒絕的申請"""
    return (
        db.query(LeaveApplication)
        .filter(
            LeaveApplication.staff_id == staff_id,
            LeaveApplication.date == target_date,
            LeaveApplication.status != LeaveStatus.REJECTED.value,
        )
        .first()
    )

def count_annual_applications(db: Session, clinic_id: int, target_date: date) -> int:
    return (
        db.query(func.count(LeaveApplication.id))
        .filter(
            LeaveApplication.clinic_id == clinic_id,
            LeaveApplication.date == target_date,
            LeaveApplication.leave_type == LeaveType.ANNUAL.value,
            LeaveApplication.status.in_(ACTIVE_LEAVE_STATUSES),
        )
        .scalar()
        or 0
    )

def count_confirmed_in_category(db: Session, clinic_id: int, category: str, target_date: date) -> int:
    return (
        db.query(func.count(LeaveApplication.id))
        .join(Staff, LeaveApplication.staff_id == Staff.id)
        .filter(
            LeaveApplication.clinic_id == clinic_id,
            LeaveApplication.date == target_date,
            LeaveApplication.status == LeaveStatus.CONFIRMED.value,
            Staff.category_name == category,
        )
        .scalar()
        or 0
    )

def get_hold_reason(
    db: Session,
    clinic_id: int,
    staff: Staff,
    target_date: date,
    resolver: Optional[RequirementResolver] = None,
) -> Optional[str]:
    """
    當日同類別是否還有可休假的名額

    可休人數 = 同類別在職人數 - 當日需求人數 - 已確認的同類別休假；
    沒有名額時回傳保留原因，有名額（或員工未設定類別）時回傳 None。
    """
    category = staff.category_name
    if not category:
        return None

    resolver = resolver or RequirementResolver(db)
    headcount = count_active_in_category(db, clinic_id, category, resolver.department)
    required = resolver.required_slots(clinic_id, target_date, category)
    confirmed = count_confirmed_in_category(db, clinic_id, category, target_date)
    available = headcount - required - confirmed

    if available > 0:
        return None
    return (
        f"{target_date} {category} 可休名額不足（在職 {headcount} 人、需求 {required} 人、已確認 {confirmed} 人），"
        f"待整體排班完成後再審核"
    )

def submit_leave_application(
    db: Session,
    clinic_id: int,
    staff_id: int,
    target_date: date,
    leave_type: LeaveType,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> LeaveSubmissionResult:
    """
    送出年假/休假申請

    休假 (OFF) 先經過動態公平性檢查，被拒絕時不寫入資料；
    年假 (ANNUAL) 受請假期間每日名額限制。
    同類別當日已無可休名額時，申請以 ON_HOLD 保留並記錄原因。
    """
    year = year or target_date.year
    month = month or target_date.month

    staff = get_staff(db, staff_id)
    if staff is None or not staff.is_active:
        raise StaffNotFoundError(f"找不到在職員工: {staff_id}")

    if find_existing_application(db, staff_id, target_date):
        raise DuplicateApplicationError(f"{target_date} 已有申請紀錄")

    fairness = None
    calculator = DynamicFairnessCalculator(db)
    if leave_type == LeaveType.OFF:
        fairness = calculator.check_dynamic_fairness(clinic_id, staff_id, target_date, year, month)
        if not fairness.allowed:
            return LeaveSubmissionResult(success=False, fairness=fairness, message=fairness.reason)
    else:
        period = get_leave_period(db, clinic_id, year, month)
        if period is not None and period.max_slots > 0:
            used = count_annual_applications(db, clinic_id, target_date)
            if used >= period.max_slots:
                raise AnnualSlotExceededError(
                    f"{target_date} 年假名額已滿（{used}/{period.max_slots}）"
                )

    hold_reason = get_hold_reason(db, clinic_id, staff, target_date, calculator.resolver)
    application = LeaveApplication(
        clinic_id=clinic_id,
        staff_id=staff_id,
        date=target_date,
        leave_type=leave_type.value,
        status=LeaveStatus.ON_HOLD.value if hold_reason else LeaveStatus.PENDING.value,
        hold_reason=hold_reason,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError as e:
        # 同時送出的另一筆申請先寫入
        db.rollback()
        raise DuplicateApplicationError(f"{target_date} 已有申請紀錄") from e
    db.refresh(application)

    logger.info(
        f"[leave] staff={staff_id} date={target_date} type={leave_type.value} "
        f"申請已建立 id={application.id} status={application.status}"
    )
    return LeaveSubmissionResult(
        success=True,
        application=LeaveApplicationSchema.model_validate(application),
        fairness=fairness,
        message=f"申請已保留: {hold_reason}" if hold_reason else "申請已送出",
    )
