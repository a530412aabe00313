import os

# 測試一律使用記憶體內 sqlite，必須在載入套件設定前指定
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date
from typing import Dict, Iterable, Optional, Tuple

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_fairness.core.database import Base, build_engine, create_tables, get_db
from clinic_fairness.models import (
    Doctor,
    DoctorCombination,
    DoctorSchedule,
    FairnessScore,
    FairnessSettings,
    Holiday,
    LeaveApplication,
    LeavePeriod,
    LeaveStatus,
    LeaveType,
    ScheduleDoctor,
    Staff,
    StaffAssignment,
)

DEPARTMENT = "診療室"
CLINIC_ID = 1

class Seeder:
    """建立測試資料的小工具，每個方法都會 commit"""

    DEVIATION_COLUMNS = {
        "total_days": "fairness_score_total_days",
        "night": "fairness_score_night",
        "weekend": "fairness_score_weekend",
        "holiday": "fairness_score_holiday",
        "holiday_adjacent": "fairness_score_holiday_adjacent",
    }

    def __init__(self, db, clinic_id: int = CLINIC_ID):
        self.db = db
        self.clinic_id = clinic_id
        self._doctors: Dict[str, Doctor] = {}
        self._schedules: Dict[Tuple[int, int], DoctorSchedule] = {}

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def staff(self, name: str, category: Optional[str] = "A", department: str = DEPARTMENT,
              is_active: bool = True, **deviations) -> Staff:
        row = Staff(
            clinic_id=self.clinic_id,
            name=name,
            department_name=department,
            category_name=category,
            is_active=is_active,
        )
        for key, value in deviations.items():
            setattr(row, self.DEVIATION_COLUMNS[key], value)
        return self._save(row)

    def doctor(self, short_name: str) -> Doctor:
        if short_name not in self._doctors:
            self._doctors[short_name] = self._save(
                Doctor(clinic_id=self.clinic_id, name=f"{short_name} 醫師", short_name=short_name)
            )
        return self._doctors[short_name]

    def _schedule(self, day: date) -> DoctorSchedule:
        key = (day.year, day.month)
        if key not in self._schedules:
            self._schedules[key] = self._save(
                DoctorSchedule(clinic_id=self.clinic_id, year=day.year, month=day.month)
            )
        return self._schedules[key]

    def roster(self, days: Iterable[date], doctors=("K",), night: bool = False):
        for day in days:
            schedule = self._schedule(day)
            for short_name in doctors:
                self.db.add(
                    ScheduleDoctor(
                        schedule_id=schedule.id,
                        doctor_id=self.doctor(short_name).id,
                        date=day,
                        has_night_shift=night,
                    )
                )
        self.db.commit()

    def combination(self, doctors=("K",), night: bool = False, categories=None,
                    department: str = DEPARTMENT) -> DoctorCombination:
        return self._save(
            DoctorCombination(
                clinic_id=self.clinic_id,
                name="+".join(doctors),
                doctors=sorted(doctors),
                has_night_shift=night,
                department_category_staff={department: categories or {}},
            )
        )

    def holiday(self, day: date, name: str = "假日") -> Holiday:
        return self._save(Holiday(clinic_id=self.clinic_id, date=day, name=name))

    def leave_period(self, year: int, month: int, start: date, end: date, max_slots: int = 0) -> LeavePeriod:
        return self._save(
            LeavePeriod(
                clinic_id=self.clinic_id,
                year=year,
                month=month,
                start_date=start,
                end_date=end,
                max_slots=max_slots,
            )
        )

    def application(self, staff: Staff, day: date, leave_type: LeaveType = LeaveType.OFF,
                    status: LeaveStatus = LeaveStatus.CONFIRMED) -> LeaveApplication:
        return self._save(
            LeaveApplication(
                clinic_id=self.clinic_id,
                staff_id=staff.id,
                date=day,
                leave_type=leave_type.value,
                status=status.value,
            )
        )

    def assignment(self, staff: Staff, day: date) -> StaffAssignment:
        return self._save(StaffAssignment(clinic_id=self.clinic_id, staff_id=staff.id, date=day, shift_type="D"))

    def settings(self, **overrides) -> FairnessSettings:
        values = dict(
            enable_fairness_check=True,
            enable_night_shift_fairness=True,
            enable_weekend_fairness=True,
            enable_holiday_fairness=True,
            enable_holiday_adjacent_fairness=True,
            night_shift_weight=2.0,
            weekend_weight=1.5,
            holiday_weight=2.0,
            fairness_threshold=0.2,
        )
        values.update(overrides)
        return self._save(FairnessSettings(clinic_id=self.clinic_id, **values))

    def score(self, staff: Staff, year: int, month: int, night: int = 0, weekend: int = 0,
              holiday: int = 0, adjacent: int = 0) -> FairnessScore:
        return self._save(
            FairnessScore(
                staff_id=staff.id,
                year=year,
                month=month,
                night_shift_count=night,
                weekend_count=weekend,
                holiday_count=holiday,
                holiday_adjacent_count=adjacent,
            )
        )

@pytest.fixture
def engine():
    # StaticPool：所有連線共用同一個記憶體資料庫
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_tables(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def seed(db):
    return Seeder(db)

@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from clinic_fairness.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

# 2026 年 2 月：2/1 為週日，週六為 7、14、21、28
SATURDAYS = [date(2026, 2, 7), date(2026, 2, 14), date(2026, 2, 21), date(2026, 2, 28)]
NIGHT_TUESDAYS = [date(2026, 2, 3), date(2026, 2, 10), date(2026, 2, 17), date(2026, 2, 24)]
DAY_WEEKDAYS = [
    date(2026, 2, 2), date(2026, 2, 4), date(2026, 2, 5), date(2026, 2, 6),
    date(2026, 2, 9), date(2026, 2, 11), date(2026, 2, 12), date(2026, 2, 13),
]

@pytest.fixture
def february(seed):
    """
    四名 A 類別員工的二月班表：
    - 週六 4 天，每天需 A 類 2 人（週末共 8 人次）
    - 一般平日 8 天，每天 2 人
    - 夜診週二 4 天，每天 1 人
    """
    staff = [seed.staff(name) for name in ("Kim", "Lee", "Park", "Choi")]
    seed.combination(("K",), night=False, categories={"A": 2})
    seed.combination(("K",), night=True, categories={"A": 1})
    seed.roster(SATURDAYS + DAY_WEEKDAYS, ("K",), night=False)
    seed.roster(NIGHT_TUESDAYS, ("K",), night=True)
    seed.leave_period(2026, 2, date(2026, 2, 1), date(2026, 2, 28))
    return staff

@pytest.fixture
def night_year(seed):
    """
    夜診週二 4 天、每天需 A 類 5 人 → 累積需求 20 人次，4 人 → 每人目標 5
    1~2 月夜班累計：Kim 2（落後）、Lee 4、Park 8（超前）、Choi 6
    """
    staff = [seed.staff(name) for name in ("Kim", "Lee", "Park", "Choi")]
    seed.combination(("K",), night=True, categories={"A": 5})
    seed.roster(NIGHT_TUESDAYS, ("K",), night=True)
    for member, (january, february_count) in zip(staff, [(1, 1), (2, 2), (4, 4), (3, 3)]):
        seed.score(member, 2026, 1, night=january)
        seed.score(member, 2026, 2, night=february_count)
    # 目標月份之後的資料不計入
    seed.score(staff[0], 2026, 3, night=10)
    return staff
