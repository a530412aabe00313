from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base

class Doctor(Base):
    """醫師資料"""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    name = Column(String(50), nullable=False, comment="醫師姓名")
    short_name = Column(String(20), nullable=False, comment="醫師簡稱，人力需求範本以此組合")
    created_at = Column(DateTime, default=func.now())

    schedule_entries = relationship("ScheduleDoctor", back_populates="doctor")

class DoctorSchedule(Base):
    """醫師月班表"""
    __tablename__ = "doctor_schedules"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # 關聯每日出勤醫師
    entries = relationship("ScheduleDoctor", back_populates="schedule", cascade="all, delete-orphan")

class ScheduleDoctor(Base):
    """每日出勤醫師（同一天的所有列即為當日班表）"""
    __tablename__ = "schedule_doctors"

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("doctor_schedules.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    date = Column(Date, index=True, nullable=False)
    has_night_shift = Column(Boolean, default=False, nullable=False, comment="當日是否有夜間門診")

    schedule = relationship("DoctorSchedule", back_populates="entries")
    doctor = relationship("Doctor", back_populates="schedule_entries")

class DoctorCombination(Base):
    """醫師組合人力需求範本

    以「當日醫師簡稱排序後的集合 + 是否有夜診」為鍵；
    department_category_staff 格式為 {部門: {類別: 人數 或 {"count": n, "minRequired": m}}}
    """
    __tablename__ = "doctor_combinations"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    doctors = Column(JSON, nullable=False)  # 排序後的醫師簡稱列表
    has_night_shift = Column(Boolean, default=False, nullable=False)
    department_required_staff = Column(JSON, nullable=True)  # {部門: 人數}
    department_category_staff = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
