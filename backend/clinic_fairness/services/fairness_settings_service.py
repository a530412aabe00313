import logging
from typing import Optional
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.fairness_settings import FairnessSettings
from ..schemas.fairness import EffectiveFairnessSettings, FairnessDimension, FairnessSettingsUpdate

logger = logging.getLogger(__name__)

# 各面向對應的啟用開關；總出勤日沒有開關，一律檢查
DIMENSION_FLAGS = {
    FairnessDimension.NIGHT: "enable_night_shift_fairness",
    FairnessDimension.WEEKEND: "enable_weekend_fairness",
    FairnessDimension.HOLIDAY: "enable_holiday_fairness",
    FairnessDimension.HOLIDAY_ADJACENT: "enable_holiday_adjacent_fairness",
}

def get_settings_row(db: Session, clinic_id: int) -> Optional[FairnessSettings]:
    return db.query(FairnessSettings).filter(FairnessSettings.clinic_id == clinic_id).first()

def default_fairness_settings(clinic_id: int) -> EffectiveFairnessSettings:
    """診所未設定時的預設值"""
    return EffectiveFairnessSettings(
        clinic_id=clinic_id,
        enable_fairness_check=settings.DEFAULT_ENABLE_FAIRNESS_CHECK,
        enable_night_shift_fairness=False,
        enable_weekend_fairness=False,
        enable_holiday_fairness=False,
        enable_holiday_adjacent_fairness=False,
        night_shift_weight=settings.DEFAULT_NIGHT_SHIFT_WEIGHT,
        weekend_weight=settings.DEFAULT_WEEKEND_WEIGHT,
        holiday_weight=settings.DEFAULT_HOLIDAY_WEIGHT,
        fairness_threshold=settings.DEFAULT_FAIRNESS_THRESHOLD,
        is_default=True,
    )

def to_effective(row: FairnessSettings) -> EffectiveFairnessSettings:
    return EffectiveFairnessSettings(
        clinic_id=row.clinic_id,
        enable_fairness_check=row.enable_fairness_check,
        enable_night_shift_fairness=row.enable_night_shift_fairness,
        enable_weekend_fairness=row.enable_weekend_fairness,
        enable_holiday_fairness=row.enable_holiday_fairness,
        enable_holiday_adjacent_fairness=row.enable_holiday_adjacent_fairness,
        night_shift_weight=row.night_shift_weight,
        weekend_weight=row.weekend_weight,
        holiday_weight=row.holiday_weight,
        fairness_threshold=row.fairness_threshold,
        is_default=False,
    )

def get_fairness_settings(db: Session, clinic_id: int) -> EffectiveFairnessSettings:
    row = get_settings_row(db, clinic_id)
    if row is None:
        return default_fairness_settings(clinic_id)
    return to_effective(row)

def is_dimension_enabled(fairness_settings: EffectiveFairnessSettings, dimension: FairnessDimension) -> bool:
    flag = DIMENSION_FLAGS.get(dimension)
    if flag is None:
        return True
    return bool(getattr(fairness_settings, flag))

def update_fairness_settings(db: Session, clinic_id: int, update: FairnessSettingsUpdate) -> EffectiveFairnessSettings:
    """建立或更新診所的公平性設定（只覆寫有提供的欄位）"""
    row = get_settings_row(db, clinic_id)
    if row is None:
        defaults = default_fairness_settings(clinic_id)
        row = FairnessSettings(
            clinic_id=clinic_id,
            enable_fairness_check=defaults.enable_fairness_check,
            enable_night_shift_fairness=defaults.enable_night_shift_fairness,
            enable_weekend_fairness=defaults.enable_weekend_fairness,
            enable_holiday_fairness=defaults.enable_holiday_fairness,
            enable_holiday_adjacent_fairness=defaults.enable_holiday_adjacent_fairness,
            night_shift_weight=defaults.night_shift_weight,
            weekend_weight=defaults.weekend_weight,
            holiday_weight=defaults.holiday_weight,
            fairness_threshold=defaults.fairness_threshold,
        )
        db.add(row)

    for field, value in update.model_dump(exclude_none=True).items():
        setattr(row, field, value)

    db.commit()
    db.refresh(row)
    logger.info(f"診所 {clinic_id} 公平性設定已更新: {update.model_dump(exclude_none=True)}")
    return to_effective(row)
