import enum
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Index, Text, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base

class LeaveType(str, enum.Enum):
    ANNUAL = "ANNUAL"  # 年假
    OFF = "OFF"  # 休假

class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    ON_HOLD = "ON_HOLD"
    REJECTED = "REJECTED"

# 計入已使用額度的狀態
ACTIVE_LEAVE_STATUSES = (LeaveStatus.CONFIRMED.value, LeaveStatus.PENDING.value)

class LeaveApplication(Base):
    """年假/休假申請"""
    __tablename__ = "leave_applications"
    # 同一員工同一天只能有一筆未被拒絕的申請
    __table_args__ = (
        Index(
            "uq_leave_application_staff_date_open",
            "staff_id",
            "date",
            unique=True,
            postgresql_where=text("status <> 'REJECTED'"),
            sqlite_where=text("status <> 'REJECTED'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    date = Column(Date, index=True, nullable=False)
    leave_type = Column(String(10), nullable=False)  # ANNUAL / OFF
    status = Column(String(20), default=LeaveStatus.PENDING.value, nullable=False)
    hold_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    staff = relationship("Staff", back_populates="leave_applications")

class LeavePeriod(Base):
    """每月的請假申請期間"""
    __tablename__ = "leave_periods"
    __table_args__ = (
        UniqueConstraint("clinic_id", "year", "month", name="uq_leave_period_clinic_year_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    max_slots = Column(Integer, default=0, nullable=False)  # 每日年假申請人數上限，0 表示不限

class Holiday(Base):
    """診所公休/國定假日"""
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    name = Column(String(100), nullable=True)

class StaffAssignment(Base):
    """已確定的員工排班（排班流程寫入）"""
    __tablename__ = "staff_assignments"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    date = Column(Date, index=True, nullable=False)
    shift_type = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=func.now())
