from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging

from ..core.database import get_db
from ..schemas.fairness import (
    ComprehensiveAnalysis,
    ComprehensiveFairnessReport,
    CumulativeTarget,
    DynamicFairnessRequest,
    EffectiveFairnessSettings,
    FairnessCheckResult,
    FairnessDimension,
    FairnessSettingsUpdate,
    MonthlyFairnessAnalysis,
    OpportunitySummary,
    ValidateOffRequest,
    ValidationResult,
)
from ..services.comprehensive_fairness_service import ComprehensiveFairnessService
from ..services.dynamic_fairness_calculator import DynamicFairnessCalculator
from ..services.fairness_settings_service import get_fairness_settings, update_fairness_settings
from ..services.leave_period_service import resolve_application_window
from ..services.monthly_fairness_service import MonthlyFairnessService
from ..services.opportunity_enumerator import OpportunityEnumerator
from ..services.yearly_fairness_service import YearlyFairnessService
from ..utils.timezone import current_year_month

# 設置logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fairness", tags=["公平性"])

def resolve_year_month(year: Optional[int], month: Optional[int]) -> Tuple[int, int]:
    """未指定年月時使用診所時區的當月"""
    current_year, current_month = current_year_month()
    return year or current_year, month or current_month

@router.post("/check", response_model=FairnessCheckResult)
def check_dynamic_fairness(request: DynamicFairnessRequest, db: Session = Depends(get_db)):
    """動態公平性休假檢查"""
    try:
        return DynamicFairnessCalculator(db).check_dynamic_fairness(
            request.clinic_id,
            request.staff_id,
            request.request_date,
            request.year,
            request.month,
            request.pending_selections,
        )
    except Exception as e:
        logger.error(f"動態公平性檢查失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"動態公平性檢查失敗: {str(e)}",
        )

@router.post("/validate-off", response_model=ValidationResult)
def validate_off_application(request: ValidateOffRequest, db: Session = Depends(get_db)):
    """休假申請綜合驗證（年度 + 月度）"""
    try:
        return ComprehensiveFairnessService(db).validate_off_application(
            request.clinic_id,
            request.staff_id,
            request.date,
            request.has_night_shift,
            request.is_holiday,
        )
    except Exception as e:
        logger.error(f"休假申請驗證失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"休假申請驗證失敗: {str(e)}",
        )

@router.get("/staff/{staff_id}/analysis", response_model=ComprehensiveAnalysis)
def get_staff_comprehensive_analysis(
    staff_id: int,
    clinic_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    year, month = resolve_year_month(year, month)
    try:
        analysis = ComprehensiveFairnessService(db).get_staff_comprehensive_analysis(clinic_id, staff_id, year, month)
        if analysis is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"找不到員工 {staff_id} 的 {year}-{month:02d} 公平性資料",
            )
        return analysis
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"取得員工公平性分析失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"取得員工公平性分析失敗: {str(e)}",
        )

@router.get("/analysis", response_model=List[ComprehensiveAnalysis])
def get_all_staff_comprehensive_analysis(
    clinic_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    year, month = resolve_year_month(year, month)
    try:
        return ComprehensiveFairnessService(db).get_all_staff_comprehensive_analysis(clinic_id, year, month)
    except Exception as e:
        logger.error(f"取得全體公平性分析失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"取得全體公平性分析失敗: {str(e)}",
        )

@router.get("/report", response_model=ComprehensiveFairnessReport)
def get_comprehensive_fairness_report(
    clinic_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    """年度公平性報告（夜班、週末、假日、假日前後 + 建議）"""
    year, month = resolve_year_month(year, month)
    try:
        return YearlyFairnessService(db).get_comprehensive_fairness_report(clinic_id, year, month)
    except Exception as e:
        logger.error(f"產生公平性報告失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"產生公平性報告失敗: {str(e)}",
        )

@router.get("/monthly", response_model=MonthlyFairnessAnalysis)
def get_monthly_fairness_analysis(
    clinic_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    year, month = resolve_year_month(year, month)
    try:
        return MonthlyFairnessService(db).get_monthly_fairness_analysis(clinic_id, year, month)
    except Exception as e:
        logger.error(f"取得月度公平性分析失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"取得月度公平性分析失敗: {str(e)}",
        )

@router.get("/cumulative-target", response_model=CumulativeTarget)
def get_cumulative_target(
    clinic_id: int,
    dimension: FairnessDimension,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    year, month = resolve_year_month(year, month)
    try:
        return YearlyFairnessService(db).calculate_cumulative_target(clinic_id, year, month, dimension)
    except Exception as e:
        logger.error(f"計算累積目標失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"計算累積目標失敗: {str(e)}",
        )

@router.get("/opportunities", response_model=OpportunitySummary)
def get_opportunities(
    clinic_id: int,
    dimension: FairnessDimension,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    category: Optional[str] = None,
    clip_to_window: bool = False,
    db: Session = Depends(get_db),
):
    """機會日與所需人次；clip_to_window 為真時週六依實際申請期間裁切"""
    year, month = resolve_year_month(year, month)
    try:
        enumerator = OpportunityEnumerator(db)
        window = None
        if clip_to_window:
            application_window = resolve_application_window(db, clinic_id, year, month, enumerator.resolver)
            if application_window is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"{year} 年 {month} 月尚未設定請假申請期間",
                )
            window = application_window.bounds
        return enumerator.summarize(clinic_id, year, month, dimension, category, window)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"取得機會日失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"取得機會日失敗: {str(e)}",
        )

@router.get("/settings/{clinic_id}", response_model=EffectiveFairnessSettings)
def read_fairness_settings(clinic_id: int, db: Session = Depends(get_db)):
    return get_fairness_settings(db, clinic_id)

@router.put("/settings/{clinic_id}", response_model=EffectiveFairnessSettings)
def save_fairness_settings(clinic_id: int, update: FairnessSettingsUpdate, db: Session = Depends(get_db)):
    try:
        return update_fairness_settings(db, clinic_id, update)
    except Exception as e:
        db.rollback()
        logger.error(f"更新公平性設定失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"更新公平性設定失敗: {str(e)}",
        )
