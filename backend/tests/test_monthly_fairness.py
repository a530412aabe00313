from clinic_fairness.schemas.fairness import FairnessWeights
from clinic_fairness.services.monthly_fairness_service import MonthlyFairnessService

from conftest import CLINIC_ID

def scores_by_name(analysis):
    return {s.staff_name: s for s in analysis.scores}

def test_calculate_score():
    weights = FairnessWeights(night_shift=2.0, weekend=1.5, holiday=2.0)
    assert MonthlyFairnessService.calculate_score(2, 2, 1, weights) == 9.0

def test_boundary_score_is_not_low(db, night_year):
    # 二月分數：Kim 2、Lee 4、Park 8、Choi 6 → 平均 5，下限 4，上限 6
    analysis = MonthlyFairnessService(db).get_monthly_fairness_analysis(CLINIC_ID, 2026, 2)
    assert analysis.average_score == 5.0
    assert analysis.min_required == 4.0
    assert analysis.max_allowed == 6.0

    scores = scores_by_name(analysis)
    assert scores["Kim"].status == "low"
    assert not scores["Kim"].can_apply_night_off
    assert not scores["Kim"].can_apply_weekend_off
    assert scores["Lee"].total_score == 4.0
    assert scores["Lee"].status == "normal"
    assert scores["Park"].status == "high"
    assert scores["Park"].can_apply_night_off

def test_staff_without_scores_count_as_zero(db, seed, night_year):
    seed.staff("Han")
    scores = scores_by_name(MonthlyFairnessService(db).get_monthly_fairness_analysis(CLINIC_ID, 2026, 2))
    assert scores["Han"].total_score == 0
    assert scores["Han"].status == "low"

def test_weights_from_clinic_settings(db, seed, night_year):
    seed.settings(night_shift_weight=1.0, fairness_threshold=0.7)
    analysis = MonthlyFairnessService(db).get_monthly_fairness_analysis(CLINIC_ID, 2026, 2)
    assert analysis.weights.night_shift == 1.0
    assert analysis.average_score == 2.5
    assert analysis.min_required == 0.75
    assert scores_by_name(analysis)["Kim"].status == "normal"

def test_disabled_check_returns_empty(db, seed, night_year):
    seed.settings(enable_fairness_check=False)
    analysis = MonthlyFairnessService(db).get_monthly_fairness_analysis(CLINIC_ID, 2026, 2)
    assert analysis.scores == []
    assert analysis.average_score == 0

def test_can_apply_off(db, night_year):
    kim, lee, park, choi = night_year
    service = MonthlyFairnessService(db)

    blocked = service.can_apply_off(CLINIC_ID, kim.id, 2026, 2, "weekend")
    assert not blocked.allowed
    assert blocked.reason
    assert blocked.details.my_score == 2.0
    assert blocked.details.min_required == 4.0

    allowed = service.can_apply_off(CLINIC_ID, lee.id, 2026, 2, "night")
    assert allowed.allowed
    assert allowed.details.night_shift_count == 2

def test_can_apply_off_without_score(db, night_year):
    check = MonthlyFairnessService(db).can_apply_off(CLINIC_ID, 9999, 2026, 2, "night")
    assert check.allowed
    assert check.details is None
