from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from ..models.leave import LeaveType
from .fairness import FairnessCheckResult

# 請假申請請求模型
class LeaveApplicationCreate(BaseModel):
    clinic_id: int
    staff_id: int
    date: date
    leave_type: LeaveType
    # 申請所屬的年月（請假期間），未提供則取申請日期所在月份
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)

# 請假申請響應模型
class LeaveApplication(BaseModel):
    id: int
    clinic_id: int
    staff_id: int
    date: date
    leave_type: str
    status: str
    hold_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LeaveSubmissionResult(BaseModel):
    success: bool
    application: Optional[LeaveApplication] = None
    fairness: Optional[FairnessCheckResult] = None
    message: Optional[str] = None
