"""Tests for the single-gap detector and per-shoe misuse summary."""

import pytest

from cinda.models.analysis import Gap
from cinda.models.profile import OwnedShoe, WeeklyVolume
from cinda.services.gap_detector import (
    BALANCED_REASONING,
    EMPTY_ROTATION_REASONING,
    GapDetector,
    gap_summary,
    is_gap_critical,
)
from cinda.services.rotation_analyzer import RotationAnalyzer
from cinda.services.rotation_summary import (
    MISUSE_MESSAGES,
    build_rotation_summary,
    detect_misuse,
)


@pytest.fixture
def detect(catalogue):
    analyzer = RotationAnalyzer(catalogue)
    detector = GapDetector(catalogue)

    def run(profile, owned):
        return detector.detect(analyzer.analyze(owned, profile), profile, owned)

    return run


class TestGapDetector:
    def test_empty_rotation(self, detect, make_profile):
        gap = detect(make_profile(), [])
        assert gap.type == "coverage"
        assert gap.severity == "high"
        assert gap.recommended_archetype == "daily_trainer"
        assert gap.reasoning == EMPTY_ROTATION_REASONING

    def test_race_shoe_on_easy_days_is_misuse(self, detect, make_profile):
        gap = detect(make_profile(), [OwnedShoe("nike_vaporfly_3", run_types=("recovery",))])
        assert gap.type == "misuse"
        assert gap.recommended_archetype == "daily_trainer"
        assert gap.run_type == "recovery"
        assert "easy runs" in gap.reasoning

    def test_recovery_shoe_on_race_day_is_misuse(self, detect, make_profile):
        gap = detect(make_profile(), [OwnedShoe("hoka_bondi_8", run_types=("races",))])
        assert gap.type == "misuse"
        assert gap.recommended_archetype == "race_shoe"
        assert "slow on race day" in gap.reasoning

    def test_uncovered_trail(self, detect, make_profile):
        profile = make_profile(trail_running="most_or_all")
        gap = detect(profile, [OwnedShoe("nike_pegasus_41", run_types=("all_runs", "trail"))])
        assert gap.type == "coverage"
        assert gap.severity == "high"
        assert gap.run_type == "trail"
        assert gap.recommended_archetype == "trail_shoe"

    def test_uncatalogued_shoe_trusted_for_its_run_types(self, detect, make_profile):
        gap = detect(make_profile(), [OwnedShoe("club_trail_special", run_types=("trail",))])
        assert gap.reasoning == BALANCED_REASONING

    def test_race_training_without_fast_shoes(self, detect, make_profile):
        profile = make_profile(primary_goal="race_training")
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("saucony_ride_17", run_types=("all_runs",)),
        ]
        gap = detect(profile, owned)
        assert gap.type == "performance"
        assert gap.severity == "high"
        assert gap.recommended_archetype == "workout_shoe"
        assert "racing" in gap.reasoning

    def test_structured_training_needs_recovery(self, detect, make_profile):
        profile = make_profile(running_pattern="structured_training")
        gap = detect(profile, [OwnedShoe("nike_pegasus_41", run_types=("all_runs",))])
        assert gap.type == "recovery"
        assert gap.severity == "high"
        assert gap.recommended_archetype == "recovery_shoe"

    def test_redundancy_with_missing_archetype(self, detect, make_profile):
        profile = make_profile(trail_running="infrequently")
        owned = [
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("saucony_ride_17", run_types=("all_runs",)),
        ]
        gap = detect(profile, owned)
        assert gap.type == "redundancy"
        assert gap.severity == "low"
        assert gap.recommended_archetype == "trail_shoe"
        assert gap.redundant_shoe_ids == ["nike_pegasus_41", "saucony_ride_17"]
        assert "nothing for trail shoe" in gap.reasoning

    def test_balanced_rotation(self, detect, make_profile):
        gap = detect(make_profile(), [OwnedShoe("nike_pegasus_41", run_types=("all_runs",))])
        assert gap.severity == "low"
        assert gap.reasoning == BALANCED_REASONING

    def test_high_volume_single_shoe_is_boosted(self, detect, make_profile):
        profile = make_profile(weekly_volume=WeeklyVolume(60, "km"))
        gap = detect(profile, [OwnedShoe("nike_pegasus_41", run_types=("all_runs",))])
        assert gap.severity == "high"
        assert gap.reasoning.startswith("Your rotation covers the basics well. At 60km/week")

    def test_volume_boost_raises_medium_recovery_gap(self, detect, make_profile):
        profile = make_profile(running_pattern="mostly_easy", weekly_volume=WeeklyVolume(60, "km"))
        gap = detect(profile, [OwnedShoe("nike_pegasus_41", run_types=("all_runs",))])
        assert gap.type == "recovery"
        assert gap.severity == "high"
        assert "At 60km/week with just one shoe" in gap.reasoning

    def test_volume_context_without_boost(self, make_profile):
        profile = make_profile(weekly_volume=WeeklyVolume(50, "mi"))
        context, boost = GapDetector.volume_context(profile, 2)
        assert context == "With 50mi/week, a third shoe would help spread the load across your training."
        assert boost is False
        assert GapDetector.volume_context(make_profile(), 1) == (None, False)


class TestGapHelpers:
    def test_summary_labels(self):
        gap = Gap(type="coverage", severity="high", reasoning="", recommended_archetype="daily_trainer")
        assert gap_summary(gap) == "Critical Coverage Gap"
        assert is_gap_critical(gap)

    def test_to_dict_drops_unset_fields(self):
        gap = Gap(type="recovery", severity="medium", reasoning="r", recommended_archetype="recovery_shoe")
        assert "run_type" not in gap.to_dict()
        assert "redundant_shoe_ids" not in gap.to_dict()


class TestMisuse:
    @pytest.mark.parametrize("shoe_id,run_types,key", [
        ("nike_vaporfly_3", ["all_runs"], "race_shoe_daily"),
        ("hoka_bondi_8", ["workouts"], "recovery_shoe_fast"),
        ("salomon_speedcross_6", ["races"], "trail_shoe_road_race"),
        ("nike_vaporfly_3", ["trail"], "road_racer_trail"),
        ("saucony_endorphin_speed_4", ["recovery"], "plated_tempo_easy"),
    ])
    def test_misuse_messages(self, catalogue, shoe_id, run_types, key):
        assert detect_misuse(run_types, catalogue.get(shoe_id)) == MISUSE_MESSAGES[key]

    def test_heavy_shoe_for_workouts(self, catalogue):
        message = detect_misuse(["workouts"], catalogue.get("newbalance_880_v14"))
        assert "(300g)" in message

    def test_sensible_use(self, catalogue):
        assert detect_misuse(["all_runs", "long_runs"], catalogue.get("nike_pegasus_41")) is None
        assert detect_misuse(["races", "workouts"], catalogue.get("nike_vaporfly_3")) is None

    def test_rotation_summary(self, catalogue):
        owned = [
            OwnedShoe("nike_vaporfly_3", run_types=("all_runs",)),
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
            OwnedShoe("not_in_catalogue", run_types=("all_runs",)),
        ]
        items = build_rotation_summary(catalogue, owned)
        assert [i.shoe_id for i in items] == ["nike_vaporfly_3", "nike_pegasus_41"]
        assert items[0].misuse_level == "severe"
        assert items[0].archetypes == ["race_shoe"]
        assert items[1].misuse_level == "good"
        assert items[1].misuse_message is None
