"""Tests for rotation analysis and health scoring."""

import pytest

from cinda.models.profile import BodyWeight, OwnedShoe, WeeklyVolume
from cinda.services.catalogue_service import CatalogueService
from cinda.services.health_scorer import HealthScorer
from cinda.services.rotation_analyzer import RotationAnalyzer


@pytest.fixture
def analyzer(catalogue):
    return RotationAnalyzer(catalogue)


@pytest.fixture
def scorer(catalogue):
    return HealthScorer(catalogue)


class TestExpectedArchetypes:
    def test_pattern_goal_and_trail(self, analyzer, make_profile):
        profile = make_profile(
            running_pattern="structured_training",
            primary_goal="race_training",
            trail_running="most_or_all",
        )
        assert analyzer.expected_archetypes(profile) == [
            "daily_trainer", "recovery_shoe", "workout_shoe", "race_shoe", "trail_shoe",
        ]

    def test_injury_comeback_adds_recovery(self, analyzer, make_profile):
        profile = make_profile(running_pattern="infrequent", primary_goal="injury_comeback")
        assert analyzer.expected_archetypes(profile) == ["daily_trainer", "recovery_shoe"]

    def test_want_to_start_trails_adds_nothing(self, analyzer, make_profile):
        profile = make_profile(trail_running="want_to_start")
        assert "trail_shoe" not in analyzer.expected_archetypes(profile)


class TestCoverage:
    def test_only_credits_archetypes_the_shoe_has(self, analyzer, make_profile):
        owned = [OwnedShoe("nike_pegasus_41", run_types=("all_runs", "recovery"))]
        analysis = analyzer.analyze(owned, make_profile(running_pattern="mostly_easy"))
        assert analysis.covered_archetypes == ["daily_trainer"]
        assert analysis.missing_archetypes == ["recovery_shoe"]
        assert analysis.covered_run_types == ["all_runs", "recovery"]

    def test_uncatalogued_shoe_is_trusted(self, analyzer, make_profile):
        owned = [OwnedShoe("garage_sale_flats", run_types=("workouts",))]
        analysis = analyzer.analyze(owned, make_profile())
        assert analysis.covered_archetypes == ["workout_shoe", "race_shoe"]
        assert analysis.unresolved_shoe_ids == ["garage_sale_flats"]

    def test_empty_rotation(self, analyzer, make_profile):
        profile = make_profile(primary_goal="race_training")
        analysis = analyzer.analyze([], profile)
        assert analysis.covered_archetypes == []
        assert analysis.missing_archetypes == analysis.expected_archetypes
        assert analysis.redundancies == []

    def test_sentiment_flags(self, analyzer, make_profile):
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",), sentiment="love"),
            OwnedShoe("hoka_bondi_8", run_types=("recovery",), sentiment="dislike"),
        ]
        analysis = analyzer.analyze(owned, make_profile())
        assert not analysis.all_shoes_liked
        assert analysis.has_disliked_shoes


class TestRedundancy:
    def test_similar_shoes_sharing_a_run_type(self, analyzer, make_profile):
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs", "long_runs")),
            OwnedShoe("saucony_ride_17", run_types=("all_runs", "long_runs")),
        ]
        analysis = analyzer.analyze(owned, make_profile())
        assert len(analysis.redundancies) == 1
        group = analysis.redundancies[0]
        assert group.shoe_ids == ["nike_pegasus_41", "saucony_ride_17"]
        assert group.overlapping_run_types == ["all_runs", "long_runs"]

    def test_no_shared_run_type(self, analyzer, make_profile):
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("saucony_ride_17", run_types=("long_runs",)),
        ]
        assert analyzer.analyze(owned, make_profile()).redundancies == []

    def test_different_feel_not_redundant(self, analyzer, make_profile):
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("hoka_bondi_8", run_types=("all_runs",)),
        ]
        assert analyzer.analyze(owned, make_profile()).redundancies == []


class TestHealthSummary:
    def test_healthy(self, analyzer, make_profile):
        owned = [OwnedShoe("nike_pegasus_41", run_types=("all_runs",), sentiment="love")]
        summary = analyzer.health_summary(analyzer.analyze(owned, make_profile()))
        assert summary.status == "healthy"
        assert summary.issues == []

    def test_disliked_is_critical(self, analyzer, make_profile):
        owned = [OwnedShoe("nike_pegasus_41", run_types=("all_runs",), sentiment="dislike")]
        summary = analyzer.health_summary(analyzer.analyze(owned, make_profile()))
        assert summary.status == "critical"
        assert "Has shoes you don't like" in summary.issues


class TestHealthScorer:
    def test_coverage(self, analyzer, scorer, make_profile):
        profile = make_profile(running_pattern="mostly_easy")
        owned = [OwnedShoe("nike_pegasus_41", run_types=("all_runs",))]
        health = scorer.score(analyzer.analyze(owned, profile), profile, owned)
        assert health.coverage == 50

    @pytest.mark.parametrize("km,shoes,expected", [
        (20, 1, 100),
        (40, 1, 67),
        (60, 1, 34),
        (80, 1, 1),
        (80, 4, 100),
        (120, 0, 0),
    ])
    def test_load_resilience(self, scorer, make_profile, km, shoes, expected):
        profile = make_profile(weekly_volume=WeeklyVolume(km, "km"))
        assert scorer.load_resilience(profile, shoes) == expected

    def test_miles_converted(self, scorer, make_profile):
        # 35 mi = 56 km -> ideal 3
        profile = make_profile(weekly_volume=WeeklyVolume(35, "mi"))
        assert scorer.load_resilience(profile, 2) == 67

    def test_no_volume_means_one_shoe_is_enough(self, scorer, make_profile):
        assert scorer.load_resilience(make_profile(), 1) == 100

    @pytest.mark.parametrize("goal,owned,expected", [
        ("race_training", [("saucony_endorphin_speed_4", "workouts"), ("nike_vaporfly_3", "races")], 100),
        ("race_training", [("saucony_endorphin_speed_4", "workouts")], 60),
        ("race_training", [("nike_pegasus_41", "all_runs")], 20),
        ("get_faster", [("nike_vaporfly_3", "races")], 70),
        ("get_faster", [("nike_pegasus_41", "all_runs")], 30),
        ("injury_comeback", [("nike_pegasus_41", "all_runs")], 60),
        ("injury_comeback", [("hoka_bondi_8", "recovery")], 100),
        ("general_fitness", [("hoka_bondi_8", "recovery")], 50),
    ])
    def test_goal_alignment(self, analyzer, scorer, make_profile, goal, owned, expected):
        profile = make_profile(primary_goal=goal)
        shoes = [OwnedShoe(shoe_id, run_types=(run_type,)) for shoe_id, run_type in owned]
        assert scorer.goal_alignment(analyzer.analyze(shoes, profile), profile) == expected

    def test_variety_needs_two_shoes(self, scorer):
        assert scorer.variety([OwnedShoe("nike_pegasus_41", run_types=("all_runs",))]) == 0

    def test_variety_spread(self, scorer):
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("hoka_bondi_8", run_types=("recovery",)),
        ]
        # cushion .5, stability .25, bounce .25, rocker .75, drop .75
        assert scorer.variety(owned) == 50

    def test_overall_weights(self, analyzer, scorer, make_profile):
        profile = make_profile(running_pattern="mostly_easy", weekly_volume=WeeklyVolume(25, "km"))
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("hoka_bondi_8", run_types=("recovery",)),
        ]
        health = scorer.score(analyzer.analyze(owned, profile), profile, owned)
        assert (health.coverage, health.goal_alignment, health.load_resilience, health.variety) == (100, 100, 100, 50)
        assert health.overall == 95

    def test_scores_bounded(self, make_shoe, make_profile):
        catalogue = CatalogueService(shoes=[
            make_shoe("soft", is_daily_trainer=True, cushion_softness_1to5=1, heel_drop_mm=0),
            make_shoe("firm", is_daily_trainer=True, cushion_softness_1to5=5, heel_drop_mm=14),
        ])
        analyzer, scorer = RotationAnalyzer(catalogue), HealthScorer(catalogue)
        profile = make_profile(body_weight=BodyWeight(70), weekly_volume=WeeklyVolume(200))
        owned = [OwnedShoe("soft", run_types=("all_runs",)), OwnedShoe("firm", run_types=("all_runs",))]
        health = scorer.score(analyzer.analyze(owned, profile), profile, owned)
        for value in (health.coverage, health.variety, health.load_resilience, health.goal_alignment, health.overall):
            assert 0 <= value <= 100
