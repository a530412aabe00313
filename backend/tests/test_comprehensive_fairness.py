from datetime import date

from clinic_fairness.schemas.fairness import DateType
from clinic_fairness.services.comprehensive_fairness_service import ComprehensiveFairnessService, get_date_type

from conftest import CLINIC_ID, NIGHT_TUESDAYS, SATURDAYS

TUESDAY = date(2026, 2, 3)
SUNDAY = date(2026, 2, 8)

def test_date_type_precedence():
    assert get_date_type(SUNDAY, True, True) == DateType.SUNDAY
    assert get_date_type(SATURDAYS[0], True, True) == DateType.HOLIDAY
    assert get_date_type(SATURDAYS[0], True, False) == DateType.WEEKEND
    assert get_date_type(TUESDAY, True, False) == DateType.NIGHT_WEEKDAY
    assert get_date_type(TUESDAY, False, False) == DateType.NORMAL_WEEKDAY

def test_plain_tuesday_skips_fairness(db, seed, night_year):
    seed.settings()
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, night_year[0].id, TUESDAY, False, False
    )
    assert result.allowed
    assert not result.requires_fairness_check
    assert result.details is None

def test_sunday_skips_fairness(db, night_year):
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, night_year[0].id, SUNDAY, True, False
    )
    assert result.allowed
    assert not result.requires_fairness_check

def test_yearly_deficit_rejects_night(db, night_year):
    kim = night_year[0]
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, kim.id, NIGHT_TUESDAYS[1], True, False
    )
    assert not result.allowed
    assert result.requires_fairness_check
    assert result.reason == "YEARLY_FAIRNESS_LOW"
    assert result.details.yearly.status == "behind"
    assert result.details.yearly.cumulative_target == 5.0
    assert result.details.monthly.my_score == 2.0

def test_monthly_deficit_rejects_weekend(db, night_year):
    kim = night_year[0]
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, kim.id, SATURDAYS[0], False, False
    )
    assert not result.allowed
    assert result.reason == "MONTHLY_FAIRNESS_LOW"
    assert result.details.yearly.status == "on_track"

def test_holiday_uses_monthly_gate(db, night_year):
    kim, lee = night_year[0], night_year[1]
    service = ComprehensiveFairnessService(db)
    holiday = date(2026, 2, 16)

    rejected = service.validate_off_application(CLINIC_ID, kim.id, holiday, False, True)
    assert rejected.date_type == DateType.HOLIDAY
    assert rejected.reason == "MONTHLY_FAIRNESS_LOW"

    assert service.validate_off_application(CLINIC_ID, lee.id, holiday, False, True).allowed

def test_allowed_with_details(db, night_year):
    lee = night_year[1]
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, lee.id, NIGHT_TUESDAYS[1], True, False
    )
    assert result.allowed
    assert result.requires_fairness_check
    assert result.details.yearly.diff == -1
    assert result.details.monthly.average_score == 5.0

def test_disabled_fairness_check_allows(db, seed, night_year):
    seed.settings(enable_fairness_check=False)
    result = ComprehensiveFairnessService(db).validate_off_application(
        CLINIC_ID, night_year[0].id, NIGHT_TUESDAYS[1], True, False
    )
    assert result.allowed
    assert not result.requires_fairness_check

def test_staff_analysis_blending(db, night_year):
    kim, lee, park, choi = night_year
    service = ComprehensiveFairnessService(db)

    kim_analysis = service.get_staff_comprehensive_analysis(CLINIC_ID, kim.id, 2026, 2)
    assert kim_analysis.overall_status == "high_priority"
    assert not kim_analysis.can_apply_night_off
    assert not kim_analysis.can_apply_weekend_off
    assert kim_analysis.yearly_analysis.night_shift.priority == -3

    # 年度夜班超前但週末持平，由月度 high 決定
    park_analysis = service.get_staff_comprehensive_analysis(CLINIC_ID, park.id, 2026, 2)
    assert park_analysis.overall_status == "low_priority"
    assert park_analysis.can_apply_night_off

    lee_analysis = service.get_staff_comprehensive_analysis(CLINIC_ID, lee.id, 2026, 2)
    assert lee_analysis.overall_status == "normal"
    assert lee_analysis.monthly_analysis.status == "normal"
    assert lee_analysis.monthly_analysis.average_score == 5.0

def test_staff_outside_population(db, seed, night_year):
    desk = seed.staff("Jang", department="櫃台")
    assert ComprehensiveFairnessService(db).get_staff_comprehensive_analysis(CLINIC_ID, desk.id, 2026, 2) is None

def test_all_staff_analysis(db, seed, night_year):
    seed.staff("Jang", department="櫃台")
    results = ComprehensiveFairnessService(db).get_all_staff_comprehensive_analysis(CLINIC_ID, 2026, 2)
    assert [r.staff_name for r in results] == ["Kim", "Lee", "Park", "Choi"]

def test_all_staff_analysis_empty_when_disabled(db, seed, night_year):
    seed.settings(enable_fairness_check=False)
    assert ComprehensiveFairnessService(db).get_all_staff_comprehensive_analysis(CLINIC_ID, 2026, 2) == []
