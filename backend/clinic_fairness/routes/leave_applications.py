from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from ..core.database import get_db
from ..schemas.leave import LeaveApplicationCreate, LeaveSubmissionResult
from ..services.leave_application_service import (
    AnnualSlotExceededError,
    DuplicateApplicationError,
    StaffNotFoundError,
    submit_leave_application,
)

# 設置logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["請假申請"])

@router.post("/leave-applications", response_model=LeaveSubmissionResult)
def create_leave_application(request: LeaveApplicationCreate, db: Session = Depends(get_db)):
    """送出年假/休假申請；休假未通過公平性檢查時 success 為 false"""
    try:
        return submit_leave_application(
            db,
            request.clinic_id,
            request.staff_id,
            request.date,
            request.leave_type,
            request.year,
            request.month,
        )
    except StaffNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateApplicationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AnnualSlotExceededError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"建立請假申請失敗: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"建立請假申請失敗: {str(e)}",
        )
