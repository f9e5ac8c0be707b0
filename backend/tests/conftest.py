"""Shared fixtures: the bundled catalogue and a factory for ad-hoc shoes."""

from pathlib import Path

import pytest

from cinda.models.profile import RunnerProfile
from cinda.models.shoe import Shoe
from cinda.services.catalogue_service import CatalogueService

KNOWLEDGE_DIR = Path(__file__).resolve().parents[2] / "knowledge"


def _make_shoe(shoe_id: str, **overrides) -> Shoe:
    """Build a mid-everything road shoe; override only what a test cares about."""
    values = {
        "shoe_id": shoe_id,
        "brand": "Acme",
        "model": shoe_id.replace("_", " ").title(),
        "full_name": f"Acme {shoe_id.replace('_', ' ').title()}",
        "cushion_softness_1to5": 3,
        "bounce_1to5": 3,
        "stability_1to5": 3,
        "rocker_1to5": 3,
        "ground_feel_1to5": 3,
        "weight_feel_1to5": 3,
        "weight_g": 260,
        "heel_drop_mm": 8,
    }
    values.update(overrides)
    return Shoe(**values)


@pytest.fixture(scope="session")
def catalogue():
    """The real catalogue from knowledge/shoes.json."""
    return CatalogueService(KNOWLEDGE_DIR)


@pytest.fixture
def make_shoe():
    return _make_shoe


@pytest.fixture
def make_profile():
    def factory(**overrides) -> RunnerProfile:
        values = {
            "experience": "intermediate",
            "primary_goal": "general_fitness",
            "running_pattern": "infrequent",
        }
        values.update(overrides)
        return RunnerProfile(**values)

    return factory
