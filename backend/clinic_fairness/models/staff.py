from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base

class Staff(Base):
    """診所員工（公平性以同部門同類別為計算範圍）"""
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    department_name = Column(String(50), nullable=True)  # 所屬部門
    category_name = Column(String(50), nullable=True)  # 部門內的類別（公平性只在同類別間比較）
    is_active = Column(Boolean, default=True, nullable=False)

    # 各面向的累積偏差值，由排班流程維護，本系統僅讀取
    fairness_score_total_days = Column(Float, default=0.0, nullable=False)
    fairness_score_night = Column(Float, default=0.0, nullable=False)
    fairness_score_weekend = Column(Float, default=0.0, nullable=False)
    fairness_score_holiday = Column(Float, default=0.0, nullable=False)
    fairness_score_holiday_adjacent = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # 關聯
    fairness_scores = relationship("FairnessScore", back_populates="staff", cascade="all, delete-orphan")
    leave_applications = relationship("LeaveApplication", back_populates="staff")

class FairnessScore(Base):
    """員工每月的夜班/週末/假日出勤統計（由排班確定流程寫入）"""
    __tablename__ = "fairness_scores"
    __table_args__ = (
        UniqueConstraint("staff_id", "year", "month", name="uq_fairness_score_staff_year_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    night_shift_count = Column(Integer, default=0, nullable=False)
    weekend_count = Column(Integer, default=0, nullable=False)
    holiday_count = Column(Integer, default=0, nullable=False)
    holiday_adjacent_count = Column(Integer, default=0, nullable=False)
    total_score = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # 關聯
    staff = relationship("Staff", back_populates="fairness_scores")
