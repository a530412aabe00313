from enum import Enum
from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List, Dict

# 公平性面向
class FairnessDimension(str, Enum):
    TOTAL_DAYS = "total_days"
    WEEKEND = "weekend"
    NIGHT = "night"
    HOLIDAY = "holiday"
    HOLIDAY_ADJACENT = "holiday_adjacent"

# 以人力需求「人次」比較的面向；其餘面向以「天數」比較
SLOT_DIMENSIONS = frozenset({FairnessDimension.WEEKEND, FairnessDimension.TOTAL_DAYS})

# 綜合判斷用的日期類型
class DateType(str, Enum):
    NORMAL_WEEKDAY = "NORMAL_WEEKDAY"
    NIGHT_WEEKDAY = "NIGHT_WEEKDAY"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    SUNDAY = "SUNDAY"

# ---------- 公平性設定 ----------

class FairnessWeights(BaseModel):
    night_shift: float
    weekend: float
    holiday: float

class EffectiveFairnessSettings(BaseModel):
    clinic_id: int
    enable_fairness_check: bool
    enable_night_shift_fairness: bool
    enable_weekend_fairness: bool
    enable_holiday_fairness: bool
    enable_holiday_adjacent_fairness: bool
    night_shift_weight: float
    weekend_weight: float
    holiday_weight: float
    fairness_threshold: float
    is_default: bool = False  # 診所尚未建立設定，使用系統預設值

    @property
    def weights(self) -> FairnessWeights:
        return FairnessWeights(
            night_shift=self.night_shift_weight,
            weekend=self.weekend_weight,
            holiday=self.holiday_weight,
        )

class FairnessSettingsUpdate(BaseModel):
    enable_fairness_check: Optional[bool] = None
    enable_night_shift_fairness: Optional[bool] = None
    enable_weekend_fairness: Optional[bool] = None
    enable_holiday_fairness: Optional[bool] = None
    enable_holiday_adjacent_fairness: Optional[bool] = None
    night_shift_weight: Optional[float] = Field(default=None, ge=0)
    weekend_weight: Optional[float] = Field(default=None, ge=0)
    holiday_weight: Optional[float] = Field(default=None, ge=0)
    fairness_threshold: Optional[float] = Field(default=None, ge=0, le=1)

# ---------- 機會日與申請期間 ----------

class ApplicationWindow(BaseModel):
    start_date: date
    end_date: date
    configured_start_date: date  # 請假期間原始設定
    configured_end_date: date

    @property
    def bounds(self):
        return self.start_date, self.end_date

class OpportunitySummary(BaseModel):
    dimension: FairnessDimension
    year: int
    month: int
    category: Optional[str] = None  # None 表示部門內所有類別
    dates: List[date]
    total_opportunities: int  # 機會日數
    total_required_slots: int  # 所需人次總和

# ---------- 單一面向檢查結果 ----------

class FairnessCheckDetails(BaseModel):
    category: str
    total_staff: int
    required_slots: int
    total_opportunities: int
    base_requirement: float  # 所需人次 / 同類別人數
    deviation: float
    adjusted_requirement: int  # 套用偏差後至少需出勤的次數
    granularity: str  # "slot" 或 "day"
    used: int  # 已使用（含本次申請）
    max_allowed: int
    consumed_dates: List[date] = []

class FairnessCheckResult(BaseModel):
    allowed: bool
    code: Optional[str] = None
    reason: Optional[str] = None
    dimension: Optional[FairnessDimension] = None
    details: Optional[FairnessCheckDetails] = None
    checked_dimensions: List[FairnessDimension] = []

class DynamicFairnessRequest(BaseModel):
    clinic_id: int
    staff_id: int
    request_date: date
    year: int
    month: int = Field(ge=1, le=12)
    pending_selections: List[date] = []

# ---------- 年度累積分析 ----------

class MonthlyBreakdown(BaseModel):
    month: int
    shifts: int  # 該月機會日數
    needs: int  # 該月所需人次

class CumulativeTarget(BaseModel):
    year: int
    month: int
    dimension: FairnessDimension
    total_shifts: int
    total_needs: int
    active_employees: int
    target_per_employee: float
    breakdown: List[MonthlyBreakdown]

class EmployeeFairnessData(BaseModel):
    staff_id: int
    name: str
    current_count: int
    target: float
    diff: float
    priority: float  # 越負越優先排班
    status: str  # behind / on_track / ahead

class FairnessAnalysisResult(BaseModel):
    year: int
    month: int
    dimension: FairnessDimension
    cumulative_target: CumulativeTarget
    employees: Dict[int, EmployeeFairnessData]

class Recommendation(BaseModel):
    type: str
    priority: str  # high / medium / info
    message: str
    employee_ids: List[int]
    details: Optional[str] = None

class ComprehensiveFairnessReport(BaseModel):
    year: int
    month: int
    night_shift: FairnessAnalysisResult
    weekend_work: FairnessAnalysisResult
    holiday_work: FairnessAnalysisResult
    holiday_adjacent: FairnessAnalysisResult
    recommendations: List[Recommendation]

# ---------- 月度分數 ----------

class FairnessScoreData(BaseModel):
    staff_id: int
    staff_name: str
    night_shift_count: int
    weekend_count: int
    holiday_count: int
    total_score: float
    status: str  # low / normal / high
    can_apply_night_off: bool
    can_apply_weekend_off: bool

class MonthlyFairnessAnalysis(BaseModel):
    year: int
    month: int
    average_score: float
    min_required: float
    max_allowed: float
    fairness_threshold: float
    weights: FairnessWeights
    scores: List[FairnessScoreData]

class MonthlyOffDetails(BaseModel):
    my_score: float
    average_score: float
    min_required: float
    night_shift_count: int
    weekend_count: int
    holiday_count: int

class MonthlyOffCheck(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    details: Optional[MonthlyOffDetails] = None

# ---------- 綜合判斷 ----------

class YearlyDetail(BaseModel):
    cumulative_target: float
    current_count: int
    diff: float
    status: str

class ValidationDetails(BaseModel):
    yearly: Optional[YearlyDetail] = None
    monthly: Optional[MonthlyOffDetails] = None

class ValidationResult(BaseModel):
    allowed: bool
    requires_fairness_check: bool
    date_type: Optional[DateType] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    details: Optional[ValidationDetails] = None

class ValidateOffRequest(BaseModel):
    clinic_id: int
    staff_id: int
    date: date
    has_night_shift: bool = False
    is_holiday: bool = False

class YearlyDimensionAnalysis(BaseModel):
    cumulative_target: float
    current_count: int
    diff: float
    status: str
    priority: float

class YearlyAnalysis(BaseModel):
    night_shift: YearlyDimensionAnalysis
    weekend: YearlyDimensionAnalysis

class MonthlyAnalysisSummary(BaseModel):
    night_shift_count: int
    weekend_count: int
    holiday_count: int
    total_score: float
    average_score: float
    status: str

class ComprehensiveAnalysis(BaseModel):
    staff_id: int
    staff_name: str
    year: int
    month: int
    yearly_analysis: YearlyAnalysis
    monthly_analysis: MonthlyAnalysisSummary
    overall_status: str  # high_priority / normal / low_priority
    can_apply_night_off: bool
    can_apply_weekend_off: bool
