from clinic_fairness.schemas.fairness import (
    CumulativeTarget,
    EmployeeFairnessData,
    FairnessAnalysisResult,
    FairnessDimension,
)
from clinic_fairness.services.yearly_fairness_service import YearlyFairnessService, classify_status

from conftest import CLINIC_ID, NIGHT_TUESDAYS

def test_cumulative_target(db, night_year):
    target = YearlyFairnessService(db).calculate_cumulative_target(CLINIC_ID, 2026, 2, FairnessDimension.NIGHT)
    assert target.total_shifts == 4
    assert target.total_needs == 20
    assert target.active_employees == 4
    assert target.target_per_employee == 5.0
    assert [(b.month, b.shifts, b.needs) for b in target.breakdown] == [(1, 0, 0), (2, 4, 20)]

def test_target_rounded_to_two_decimals(db, seed):
    for name in ("Kim", "Lee", "Park"):
        seed.staff(name)
    seed.combination(("K",), night=True, categories={"A": 5, "B": 5})
    seed.roster(NIGHT_TUESDAYS[:1], ("K",), night=True)
    target = YearlyFairnessService(db).calculate_cumulative_target(CLINIC_ID, 2026, 2, FairnessDimension.NIGHT)
    assert target.total_needs == 10
    assert target.target_per_employee == 3.33

def test_target_without_active_staff(db, seed):
    seed.staff("Kim", is_active=False)
    seed.combination(("K",), night=True, categories={"A": 5})
    seed.roster(NIGHT_TUESDAYS, ("K",), night=True)
    target = YearlyFairnessService(db).calculate_cumulative_target(CLINIC_ID, 2026, 2, FairnessDimension.NIGHT)
    assert target.active_employees == 0
    assert target.target_per_employee == 0

def test_yearly_night_statuses(db, night_year):
    kim, lee, park, choi = night_year
    analysis = YearlyFairnessService(db).get_night_shift_fairness(CLINIC_ID, 2026, 2)

    assert analysis.employees[kim.id].current_count == 2
    assert analysis.employees[kim.id].diff == -3
    assert analysis.employees[kim.id].status == "behind"
    assert analysis.employees[lee.id].diff == -1
    assert analysis.employees[lee.id].status == "on_track"
    assert analysis.employees[park.id].status == "ahead"
    assert analysis.employees[choi.id].status == "on_track"

def test_population_excludes_inactive_and_other_departments(db, seed, night_year):
    retired = seed.staff("Yoon", is_active=False)
    desk = seed.staff("Jang", department="櫃台")
    employees = YearlyFairnessService(db).get_night_shift_fairness(CLINIC_ID, 2026, 2).employees
    assert retired.id not in employees
    assert desk.id not in employees
    assert len(employees) == 4

def test_status_thresholds():
    assert classify_status(-2, FairnessDimension.NIGHT) == "on_track"
    assert classify_status(-2.01, FairnessDimension.NIGHT) == "behind"
    assert classify_status(2.5, FairnessDimension.WEEKEND) == "ahead"
    assert classify_status(-1.5, FairnessDimension.HOLIDAY) == "behind"
    assert classify_status(1, FairnessDimension.HOLIDAY_ADJACENT) == "on_track"
    assert classify_status(1.5, FairnessDimension.HOLIDAY_ADJACENT) == "ahead"

def test_report_recommendations(db, night_year):
    kim, lee, park, choi = night_year
    report = YearlyFairnessService(db).get_comprehensive_fairness_report(CLINIC_ID, 2026, 2)

    by_type = {r.type: r for r in report.recommendations}
    assert by_type["night_shift_priority"].employee_ids == [kim.id]
    assert by_type["night_shift_priority"].priority == "high"
    assert by_type["night_shift_reduce"].employee_ids == [park.id]
    assert "weekend_priority" not in by_type
    assert "achievement" not in by_type
    assert all(e.status == "on_track" for e in report.holiday_work.employees.values())
    assert report.holiday_adjacent.dimension == FairnessDimension.HOLIDAY_ADJACENT

def _analysis(diffs, dimension=FairnessDimension.NIGHT):
    employees = {}
    for staff_id, diff in enumerate(diffs, start=1):
        employees[staff_id] = EmployeeFairnessData(
            staff_id=staff_id,
            name=f"員工{staff_id}",
            current_count=0,
            target=0,
            diff=diff,
            priority=diff,
            status=classify_status(diff, dimension),
        )
    return FairnessAnalysisResult(
        year=2026,
        month=2,
        dimension=dimension,
        cumulative_target=CumulativeTarget(
            year=2026, month=2, dimension=dimension, total_shifts=0, total_needs=0,
            active_employees=len(diffs), target_per_employee=0, breakdown=[],
        ),
        employees=employees,
    )

def test_priority_list_sorted_and_capped(db):
    night = _analysis([-3, -8, -4, -10, -5, -6, -7, 0])
    weekend = _analysis([0, 0, 0, 0, 0, 0, 0, 0], FairnessDimension.WEEKEND)
    recommendations = YearlyFairnessService(db).generate_recommendations(night, weekend)

    priority = next(r for r in recommendations if r.type == "night_shift_priority")
    # 依 priority 由小到大，最多 5 人
    assert priority.employee_ids == [4, 2, 7, 6, 5]
    assert "7" in priority.details

def test_reduce_list_sorted_descending(db):
    night = _analysis([3, 9, 5, 0])
    weekend = _analysis([0, 0, 0, -4], FairnessDimension.WEEKEND)
    recommendations = YearlyFairnessService(db).generate_recommendations(night, weekend)

    by_type = {r.type: r for r in recommendations}
    assert by_type["night_shift_reduce"].employee_ids == [2, 3, 1]
    assert by_type["weekend_priority"].employee_ids == [4]

def test_achievement_when_most_on_track(db):
    night = _analysis([0, 1, -1, 0.5, 2, 0])
    weekend = _analysis([0] * 6, FairnessDimension.WEEKEND)
    recommendations = YearlyFairnessService(db).generate_recommendations(night, weekend)
    assert [r.type for r in recommendations] == ["achievement"]
