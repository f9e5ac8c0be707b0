"""Tests for hard filtering and constraint relaxation."""

import pytest

from cinda.models.profile import HeelDropPreference
from cinda.services.candidate_retrieval import (
    CandidateRetriever,
    RetrievalConstraints,
    UnderConstrainedError,
    binding_constraint,
    passes_hard_filters,
)
from cinda.services.catalogue_service import CatalogueService, CatalogueUnavailableError


@pytest.fixture
def retriever(catalogue):
    return CandidateRetriever(catalogue)


class TestHardFilters:
    def test_road_slot_excludes_trail_shoes(self, retriever):
        shoes = retriever.filter(RetrievalConstraints(archetypes=("daily_trainer",)))
        assert shoes
        assert not any(shoe.is_trail for shoe in shoes)

    def test_trail_slot_only_trail_shoes(self, retriever):
        shoes = retriever.filter(RetrievalConstraints(archetypes=("trail_shoe",)))
        assert len(shoes) >= 3
        assert all(shoe.is_trail for shoe in shoes)

    def test_budget_excluded_by_default(self, retriever):
        shoes = retriever.filter(RetrievalConstraints(archetypes=("daily_trainer",)))
        assert all(shoe.retail_price_category != "Budget" for shoe in shoes)
        admitted = retriever.filter(RetrievalConstraints(archetypes=("daily_trainer",), admit_budget=True))
        assert any(shoe.retail_price_category == "Budget" for shoe in admitted)

    def test_max_price(self, retriever):
        shoes = retriever.filter(RetrievalConstraints(archetypes=("daily_trainer",), max_price="Core"))
        assert shoes
        assert all(shoe.retail_price_category == "Core" for shoe in shoes)

    def test_exclude_ids(self, retriever):
        constraints = RetrievalConstraints(
            archetypes=("daily_trainer",),
            exclude_ids=frozenset({"nike_pegasus_41"}),
        )
        assert "nike_pegasus_41" not in {shoe.shoe_id for shoe in retriever.filter(constraints)}

    def test_brand_is_case_insensitive(self, retriever):
        shoes = retriever.filter(RetrievalConstraints(archetypes=("daily_trainer",), brand_only="hoka"))
        assert shoes
        assert {shoe.brand for shoe in shoes} == {"HOKA"}

    def test_heel_drop_tolerance(self, make_shoe):
        constraints = RetrievalConstraints(
            archetypes=("daily_trainer",),
            heel_drop=HeelDropPreference(mode="user_set", values=("0mm",)),
        )
        near = make_shoe("near", is_daily_trainer=True, heel_drop_mm=6)
        far = make_shoe("far", is_daily_trainer=True, heel_drop_mm=13)
        assert passes_hard_filters(near, constraints)
        assert not passes_hard_filters(far, constraints)


class TestRelaxation:
    def test_no_relaxation_when_enough(self, retriever):
        result = retriever.retrieve(RetrievalConstraints(archetypes=("daily_trainer",)))
        assert len(result.shoes) >= 3
        assert result.relaxations == []

    def test_brand_dropped_first(self, retriever):
        result = retriever.retrieve(RetrievalConstraints(archetypes=("daily_trainer",), brand_only="Salomon"))
        assert result.relaxations[0].step == "drop_brand"
        assert result.relaxations[0].before == 0
        assert result.constraints.brand_only is None
        assert len(result.shoes) >= 3

    def test_catalogue_is_not_mutated(self, catalogue, retriever):
        before = catalogue.shoes
        retriever.retrieve(RetrievalConstraints(archetypes=("race_shoe",), brand_only="Salomon"))
        assert catalogue.shoes == before

    def test_under_constrained_strict(self, make_shoe):
        catalogue = CatalogueService(shoes=[
            make_shoe("w1", is_workout_shoe=True),
            make_shoe("w2", is_workout_shoe=True),
        ])
        with pytest.raises(UnderConstrainedError) as exc_info:
            CandidateRetriever(catalogue).retrieve(RetrievalConstraints(archetypes=("workout_shoe",)))
        assert exc_info.value.constraint == "archetype"
        assert exc_info.value.candidate_count == 2
        assert "Try relaxing archetype" in str(exc_info.value)

    def test_under_constrained_non_strict(self, make_shoe):
        catalogue = CatalogueService(shoes=[
            make_shoe("w1", is_workout_shoe=True),
            make_shoe("w2", is_workout_shoe=True),
        ])
        result = CandidateRetriever(catalogue).retrieve(
            RetrievalConstraints(archetypes=("workout_shoe",)),
            strict=False,
        )
        assert [shoe.shoe_id for shoe in result.shoes] == ["w1", "w2"]
        assert [step.step for step in result.relaxations] == ["expand_archetypes", "admit_budget"]

    def test_steps_run_in_order_until_enough(self, make_shoe):
        catalogue = CatalogueService(shoes=[
            make_shoe("core", is_race_shoe=True),
            make_shoe("premium", is_race_shoe=True, retail_price_category="Premium"),
            make_shoe("race_day", is_race_shoe=True, retail_price_category="Race_Day"),
        ])
        result = CandidateRetriever(catalogue).retrieve(
            RetrievalConstraints(archetypes=("race_shoe",), max_price="Core"),
        )
        assert [step.step for step in result.relaxations] == [
            "widen_price", "expand_archetypes", "drop_price_cap",
        ]
        assert [(s.before, s.after) for s in result.relaxations] == [(1, 2), (2, 2), (2, 3)]
        assert result.constraints.max_price is None

    def test_empty_catalogue(self):
        with pytest.raises(CatalogueUnavailableError):
            CandidateRetriever(CatalogueService(shoes=[])).retrieve(
                RetrievalConstraints(archetypes=("daily_trainer",)),
            )


class TestBindingConstraint:
    def test_order(self):
        heel = HeelDropPreference(mode="user_set", values=("0mm",))
        assert binding_constraint(RetrievalConstraints(("daily_trainer",), brand_only="Acme")) == "brand_only"
        assert binding_constraint(RetrievalConstraints(("daily_trainer",), max_price="Core")) == "max_price"
        assert binding_constraint(RetrievalConstraints(("daily_trainer",), heel_drop=heel)) == "heel_drop_preference"
        assert binding_constraint(RetrievalConstraints(("daily_trainer",))) == "archetype"
