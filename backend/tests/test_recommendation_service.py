"""End-to-end tests for the recommendation pipeline."""

import pytest

from cinda.models.analysis import Gap, RecommendationSlot
from cinda.models.profile import (
    AnalyzeRequest,
    Constraints,
    FeelPreference,
    FeelPreferences,
    OwnedShoe,
    WeeklyVolume,
)
from cinda.models.recommendations import DiscoveryRequest
from cinda.services.candidate_retrieval import UnderConstrainedError
from cinda.services.catalogue_service import CatalogueService, CatalogueUnavailableError
from cinda.services.recommendation_service import (
    RecommendationService,
    build_summary_reasoning,
    discovery_reasoning,
    stability_need,
    with_targets,
)
from cinda.services.scorers import serves_archetype


@pytest.fixture
def service(catalogue):
    return RecommendationService(catalogue, diagnostics_enabled=False)


@pytest.fixture
def race_request(make_profile):
    profile = make_profile(
        primary_goal="race_training",
        running_pattern="structured_training",
        weekly_volume=WeeklyVolume(40, "km"),
    )
    return AnalyzeRequest(
        profile=profile,
        owned_shoes=(OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),),
    )


class TestAnalyze:
    def test_race_training_gets_workout_shoes(self, service, catalogue, race_request):
        result = service.analyze(race_request)
        assert result.tier.tier == 1
        assert result.tier.primary.archetype == "workout_shoe"
        assert len(result.recommendations) == 3
        assert [r.position for r in result.recommendations] == ["left", "center", "right"]
        assert [r.badge for r in result.recommendations] == ["close_match", "closest_match", "trade_off"]
        for rec in result.recommendations:
            assert rec.shoe_id != "nike_pegasus_41"
            assert serves_archetype(catalogue.get(rec.shoe_id), "workout_shoe")
        assert result.summary_reasoning

    def test_same_request_same_result(self, service, race_request):
        assert service.analyze(race_request).to_dict() == service.analyze(race_request).to_dict()

    def test_catalogue_unchanged(self, service, catalogue, race_request):
        before = catalogue.shoes
        service.analyze(race_request)
        assert catalogue.shoes == before

    def test_brand_constraint_relaxed(self, service, make_profile):
        request = AnalyzeRequest(
            profile=make_profile(),
            owned_shoes=(),
            constraints=Constraints(brand_only="Salomon"),
        )
        result = service.analyze(request)
        assert result.tier.primary.archetype == "daily_trainer"
        assert result.relaxations[0].step == "drop_brand"
        assert len(result.recommendations) == 3

    def test_feel_gap_scored(self, service, make_profile):
        request = AnalyzeRequest(
            profile=make_profile(running_pattern="mostly_easy", weekly_volume=WeeklyVolume(25, "km")),
            owned_shoes=(
                OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),
                OwnedShoe("hoka_bondi_8", run_types=("recovery",)),
            ),
        )
        result = service.analyze(request)
        assert result.tier.tier == 3
        center = next(r for r in result.recommendations if r.position == "center")
        assert "feel_gap" in center.score_breakdown
        assert "contrast" in center.score_breakdown

    def test_under_constrained(self, make_shoe, make_profile):
        catalogue = CatalogueService(shoes=[
            make_shoe("w1", is_workout_shoe=True),
            make_shoe("w2", is_workout_shoe=True),
        ])
        service = RecommendationService(catalogue, diagnostics_enabled=False)
        request = AnalyzeRequest(profile=make_profile(primary_goal="race_training"), owned_shoes=())
        with pytest.raises(UnderConstrainedError, match="Try relaxing"):
            service.analyze(request)

    def test_empty_catalogue(self, make_profile):
        service = RecommendationService(CatalogueService(shoes=[]), diagnostics_enabled=False)
        with pytest.raises(CatalogueUnavailableError):
            service.analyze(AnalyzeRequest(profile=make_profile(), owned_shoes=()))


class TestReplace:
    def test_like_for_like(self, service, catalogue, make_profile):
        owned = (
            OwnedShoe("nike_pegasus_41", run_types=("all_runs",), sentiment="love"),
            OwnedShoe("hoka_bondi_8", run_types=("recovery",)),
        )
        request = AnalyzeRequest(
            profile=make_profile(),
            owned_shoes=owned,
            intent="replace",
            replace_shoe_id="nike_pegasus_41",
        )
        result = service.analyze(request)
        ids = {r.shoe_id for r in result.recommendations}
        assert not ids & {"nike_pegasus_41", "hoka_bondi_8"}
        for rec in result.recommendations:
            assert serves_archetype(catalogue.get(rec.shoe_id), "daily_trainer")
        pegasus = catalogue.get("nike_pegasus_41")
        assert result.summary_reasoning.startswith(f"Replacing your {pegasus.full_name}")

    def test_disliked_shoe_sets_contrast(self, service, make_profile):
        request = AnalyzeRequest(
            profile=make_profile(),
            owned_shoes=(OwnedShoe("hoka_bondi_8", run_types=("recovery",), sentiment="dislike"),),
            intent="replace",
            replace_shoe_id="hoka_bondi_8",
        )
        plan = service.plan_slot(request, service.assess(request.profile, list(request.owned_shoes)))
        assert plan.slot.archetype == "recovery_shoe"
        assert plan.scoring.contrast_with.cushion == 5
        assert "feels different" in plan.slot.reason

    def test_unknown_replace_id(self, service, make_profile):
        request = AnalyzeRequest(
            profile=make_profile(),
            owned_shoes=(OwnedShoe("nike_pegasus_41", run_types=("all_runs",)),),
            intent="replace",
            replace_shoe_id="nike_vaporfly_3",
        )
        with pytest.raises(ValueError, match="not in owned_shoes"):
            service.analyze(request)


class TestDiscover:
    def test_per_archetype_shortlists(self, service, catalogue, make_profile):
        results = service.discover(
            make_profile(),
            [OwnedShoe("nike_vaporfly_3", run_types=("races",))],
            [DiscoveryRequest("race_shoe"), DiscoveryRequest("trail_shoe")],
        )
        assert [r.archetype for r in results] == ["race_shoe", "trail_shoe"]
        for result in results:
            assert 1 <= len(result.recommendations) <= 3
            assert "nike_vaporfly_3" not in {r.shoe_id for r in result.recommendations}
        assert all(catalogue.get(r.shoe_id).is_trail for r in results[1].recommendations)

    def test_too_many_requests(self, service, make_profile):
        requests = [DiscoveryRequest(a) for a in ("daily_trainer", "recovery_shoe", "race_shoe", "trail_shoe")]
        with pytest.raises(ValueError, match="maximum of 3"):
            service.discover(make_profile(), [], requests)

    def test_reasoning(self):
        request = DiscoveryRequest(
            "race_shoe",
            FeelPreferences(
                cushion_amount=FeelPreference(mode="user_set", value=1),
                energy_return=FeelPreference(mode="user_set", value=5),
                stability_amount=FeelPreference(mode="wildcard"),
            ),
        )
        assert discovery_reasoning(request) == (
            "Based on your preference for a race shoe with minimal cushion, bouncy response, "
            "and flexible platform."
        )


class TestHelpers:
    def test_with_targets_respects_user_choices(self):
        preferences = FeelPreferences(energy_return=FeelPreference(mode="user_set", value=2))
        updated = with_targets(preferences, {"bounce": 4, "cushion": 5})
        assert updated.energy_return.value == 2
        assert updated.cushion_amount == FeelPreference(mode="user_set", value=5)
        assert with_targets(preferences, {}) is preferences

    def test_stability_need(self):
        firm = FeelPreferences(stability_amount=FeelPreference(mode="user_set", value=4))
        assert stability_need(firm, None) == "stable_feel"
        assert stability_need(firm, "stability") == "stability"
        assert stability_need(FeelPreferences(), None) is None

    def test_summary_reasoning_ignores_unrelated_gap(self, catalogue):
        gap = Gap(type="recovery", severity="high", reasoning="Recovery text.", recommended_archetype="recovery_shoe")
        slot = RecommendationSlot(archetype="workout_shoe", reason="Slot reason.")
        summary = build_summary_reasoning(gap, slot, [], [catalogue.get("nike_vaporfly_3")])
        assert summary.startswith("Slot reason. ")
        assert "Recovery text." not in summary
