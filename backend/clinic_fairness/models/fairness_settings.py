from sqlalchemy import Column, Integer, Boolean, DateTime, Float
from sqlalchemy.sql import func
from ..core.database import Base

class FairnessSettings(Base):
    """診所公平性設定（每間診所一筆）"""
    __tablename__ = "fairness_settings"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, unique=True, index=True, nullable=False)

    # 啟用開關
    enable_fairness_check = Column(Boolean, default=True, nullable=False)  # 年度/月度綜合檢查
    enable_night_shift_fairness = Column(Boolean, default=True, nullable=False)
    enable_weekend_fairness = Column(Boolean, default=True, nullable=False)
    enable_holiday_fairness = Column(Boolean, default=True, nullable=False)
    enable_holiday_adjacent_fairness = Column(Boolean, default=False, nullable=False)

    # 月度分數權重
    night_shift_weight = Column(Float, default=2.0, nullable=False)
    weekend_weight = Column(Float, default=1.5, nullable=False)
    holiday_weight = Column(Float, default=2.0, nullable=False)

    # 允許偏離月平均的比例（0.2 = ±20%）
    fairness_threshold = Column(Float, default=0.2, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
