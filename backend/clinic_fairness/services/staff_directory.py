from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.staff import Staff

def get_staff(db: Session, staff_id: int) -> Optional[Staff]:
    return db.query(Staff).filter(Staff.id == staff_id).first()

def list_active_staff(db: Session, clinic_id: int, department: Optional[str] = None) -> List[Staff]:
    """公平性部門內所有在職員工（依 id 排序）"""
    department = department or settings.FAIRNESS_DEPARTMENT
    return (
        db.query(Staff)
        .filter(
            Staff.clinic_id == clinic_id,
            Staff.is_active.is_(True),
            Staff.department_name == department,
        )
        .order_by(Staff.id)
        .all()
    )

def count_active_in_category(db: Session, clinic_id: int, category: str, department: Optional[str] = None) -> int:
    """同部門同類別的在職人數"""
    department = department or settings.FAIRNESS_DEPARTMENT
    return (
        db.query(func.count(Staff.id))
        .filter(
            Staff.clinic_id == clinic_id,
            Staff.is_active.is_(True),
            Staff.department_name == department,
            Staff.category_name == category,
        )
        .scalar()
        or 0
    )
