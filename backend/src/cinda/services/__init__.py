"""Business logic services."""

from cinda.services.catalogue_service import CatalogueService, CatalogueUnavailableError
from cinda.services.candidate_retrieval import UnderConstrainedError
from cinda.services.prose_generator import ProseGenerator, fallback_summary
from cinda.services.recommendation_service import RecommendationService

__all__ = [
    "CatalogueService",
    "CatalogueUnavailableError",
    "UnderConstrainedError",
    "ProseGenerator",
    "fallback_summary",
    "RecommendationService",
]
