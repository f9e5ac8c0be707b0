"""REST endpoints for rotation analysis and shoe recommendations."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cinda.config import settings
from cinda.models.profile import (
    DISLIKE_TAGS,
    LOVE_TAGS,
    AnalyzeRequest,
    BodyWeight,
    Constraints,
    Experience,
    FeelPreference,
    FeelPreferences,
    HeelDropPreference,
    OwnedShoe,
    PreferenceMode,
    PrimaryGoal,
    RunnerProfile,
    RunningPattern,
    Sentiment,
    StabilityPreference,
    TrailRunning,
    WeeklyVolume,
)
from cinda.models.recommendations import DiscoveryRequest
from cinda.models.shoe import ARCHETYPES, PRICE_TIERS
from cinda.services.candidate_retrieval import UnderConstrainedError
from cinda.services.catalogue_service import CatalogueService, CatalogueUnavailableError
from cinda.services.gap_detector import gap_summary, is_gap_critical
from cinda.services.prose_generator import ProseGenerator
from cinda.services.recommendation_service import MAX_DISCOVERY_REQUESTS, RecommendationService
from cinda.utils.heel_drop import HEEL_DROP_BUCKETS
from cinda.utils.run_types import normalize_archetype, normalize_run_types

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])


def _get_or_create_services(request: Request) -> tuple[RecommendationService, ProseGenerator]:
    """Get or create services from app state."""
    state = request.app.state
    if not hasattr(state, "catalogue"):
        state.catalogue = CatalogueService.from_settings(settings)
    if not hasattr(state, "recommendation_service"):
        state.recommendation_service = RecommendationService(
            state.catalogue,
            min_candidates=settings.min_candidates,
            max_candidates=settings.max_candidates,
        )
    if not hasattr(state, "prose_generator"):
        state.prose_generator = ProseGenerator(
            api_key=settings.llm_api_key,
            api_url=settings.llm_api_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            enabled=settings.enable_llm,
        )
    return state.recommendation_service, state.prose_generator


class CamelModel(BaseModel):
    """Request body accepting snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeeklyVolumeBody(CamelModel):
    value: float = Field(ge=0)
    unit: Literal["km", "mi"] = "km"


class BodyWeightBody(CamelModel):
    value: float = Field(gt=0)
    unit: Literal["kg", "lb"] = "kg"


class ProfileBody(CamelModel):
    experience: Experience
    primary_goal: PrimaryGoal
    running_pattern: RunningPattern
    weekly_volume: Optional[WeeklyVolumeBody] = None
    trail_running: Optional[TrailRunning] = None
    body_weight: Optional[BodyWeightBody] = None
    brand_preference: Optional[str] = None

    def to_model(self) -> RunnerProfile:
        return RunnerProfile(
            experience=self.experience,
            primary_goal=self.primary_goal,
            running_pattern=self.running_pattern,
            weekly_volume=WeeklyVolume(self.weekly_volume.value, self.weekly_volume.unit) if self.weekly_volume else None,
            trail_running=self.trail_running,
            body_weight=BodyWeight(self.body_weight.value, self.body_weight.unit) if self.body_weight else None,
            brand_preference=self.brand_preference,
        )


class OwnedShoeBody(CamelModel):
    shoe_id: str = Field(min_length=1)
    run_types: list[str] = Field(default_factory=list)
    roles: Optional[list[str]] = None  # Legacy clients
    sentiment: Sentiment = "neutral"
    love_tags: list[str] = Field(default_factory=list)
    dislike_tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def normalize_legacy_roles(self) -> "OwnedShoeBody":
        source = self.run_types if self.run_types else (self.roles or [])
        self.run_types = normalize_run_types(source)
        return self

    @field_validator("love_tags")
    @classmethod
    def check_love_tags(cls, tags: list[str]) -> list[str]:
        unknown = [t for t in tags if t not in LOVE_TAGS]
        if unknown:
            raise ValueError(f"Unknown love tags: {unknown}")
        return tags

    @field_validator("dislike_tags")
    @classmethod
    def check_dislike_tags(cls, tags: list[str]) -> list[str]:
        unknown = [t for t in tags if t not in DISLIKE_TAGS]
        if unknown:
            raise ValueError(f"Unknown dislike tags: {unknown}")
        return tags

    def to_model(self) -> OwnedShoe:
        return OwnedShoe(
            shoe_id=self.shoe_id,
            run_types=tuple(self.run_types),
            sentiment=self.sentiment,
            love_tags=tuple(self.love_tags),
            dislike_tags=tuple(self.dislike_tags),
        )


class FeelPreferenceBody(CamelModel):
    mode: PreferenceMode = "cinda_decides"
    value: Optional[int] = Field(default=None, ge=1, le=5)

    @model_validator(mode="after")
    def require_value_when_user_set(self) -> "FeelPreferenceBody":
        if self.mode == "user_set" and self.value is None:
            raise ValueError("user_set preferences need a value")
        return self

    def to_model(self) -> FeelPreference:
        return FeelPreference(mode=self.mode, value=self.value)


class HeelDropPreferenceBody(CamelModel):
    mode: PreferenceMode = "cinda_decides"
    values: list[str] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def check_buckets(cls, values: list[str]) -> list[str]:
        unknown = [v for v in values if v not in HEEL_DROP_BUCKETS]
        if unknown:
            raise ValueError(f"Unknown heel drop buckets: {unknown}")
        return values

    def to_model(self) -> HeelDropPreference:
        return HeelDropPreference(mode=self.mode, values=tuple(self.values))


class FeelPreferencesBody(CamelModel):
    cushion_amount: FeelPreferenceBody = Field(default_factory=FeelPreferenceBody)
    stability_amount: FeelPreferenceBody = Field(default_factory=FeelPreferenceBody)
    energy_return: FeelPreferenceBody = Field(default_factory=FeelPreferenceBody)
    rocker: FeelPreferenceBody = Field(default_factory=FeelPreferenceBody)
    ground_feel: FeelPreferenceBody = Field(default_factory=FeelPreferenceBody)
    heel_drop_preference: HeelDropPreferenceBody = Field(default_factory=HeelDropPreferenceBody)

    def to_model(self) -> FeelPreferences:
        return FeelPreferences(
            cushion_amount=self.cushion_amount.to_model(),
            stability_amount=self.stability_amount.to_model(),
            energy_return=self.energy_return.to_model(),
            rocker=self.rocker.to_model(),
            ground_feel=self.ground_feel.to_model(),
            heel_drop_preference=self.heel_drop_preference.to_model(),
        )


class ConstraintsBody(CamelModel):
    brand_only: Optional[str] = None
    stability_preference: Optional[StabilityPreference] = None
    max_price: Optional[str] = None

    @field_validator("max_price")
    @classmethod
    def check_price_tier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in PRICE_TIERS:
            raise ValueError(f"max_price must be one of {list(PRICE_TIERS)}")
        return value

    def to_model(self) -> Constraints:
        return Constraints(
            brand_only=self.brand_only or None,
            stability_preference=self.stability_preference,
            max_price=self.max_price,
        )


class RotationBody(CamelModel):
    profile: ProfileBody
    owned_shoes: list[OwnedShoeBody] = Field(
        validation_alias=AliasChoices("owned_shoes", "ownedShoes", "currentShoes", "current_shoes"),
    )

    def owned(self) -> list[OwnedShoe]:
        return [shoe.to_model() for shoe in self.owned_shoes]


class AnalyzeBody(RotationBody):
    intent: Literal["add", "replace"]
    replace_shoe_id: Optional[str] = None
    constraints: ConstraintsBody = Field(default_factory=ConstraintsBody)
    feel_preferences: FeelPreferencesBody = Field(default_factory=FeelPreferencesBody)

    @model_validator(mode="after")
    def require_replace_target(self) -> "AnalyzeBody":
        if self.intent == "replace" and not self.replace_shoe_id:
            raise ValueError("replace intent needs replace_shoe_id")
        return self

    def to_request(self) -> AnalyzeRequest:
        return AnalyzeRequest(
            profile=self.profile.to_model(),
            owned_shoes=tuple(self.owned()),
            intent=self.intent,
            replace_shoe_id=self.replace_shoe_id,
            constraints=self.constraints.to_model(),
            feel_preferences=self.feel_preferences.to_model(),
        )


class DiscoveryRequestBody(CamelModel):
    archetype: str
    feel_preferences: FeelPreferencesBody = Field(default_factory=FeelPreferencesBody)

    @field_validator("archetype")
    @classmethod
    def check_archetype(cls, value: str) -> str:
        archetype = normalize_archetype(value)
        if archetype not in ARCHETYPES:
            raise ValueError(f"Unknown archetype: {value}")
        return archetype


class DiscoveryBody(RotationBody):
    owned_shoes: list[OwnedShoeBody] = Field(
        default_factory=list,
        validation_alias=AliasChoices("owned_shoes", "ownedShoes", "currentShoes", "current_shoes"),
    )
    requests: list[DiscoveryRequestBody] = Field(min_length=1, max_length=MAX_DISCOVERY_REQUESTS)


@router.post("")
async def analyze(request: Request, body: AnalyzeBody):
    """Analyze a rotation and recommend three shoes for its most important gap."""
    service, prose_generator = _get_or_create_services(request)

    try:
        result = service.analyze(body.to_request())
    except CatalogueUnavailableError as e:
        logger.error(f"Analyze failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except UnderConstrainedError as e:
        logger.warning(f"Under-constrained request ({e.constraint}): {e}")
        raise HTTPException(status_code=500, detail=f"Could not generate recommendations: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    prose = await prose_generator.generate(
        result.health,
        result.tier,
        body.owned(),
        result.rotation_summary,
        body.profile.to_model(),
    )

    response = result.to_dict()
    response["rotation_prose"] = prose.to_dict()
    return response


@router.post("/gap")
async def analyze_gap(request: Request, body: RotationBody):
    """Gap detection only: no shortlist."""
    service, _ = _get_or_create_services(request)

    try:
        service.catalogue.ensure_available()
    except CatalogueUnavailableError as e:
        logger.error(f"Gap analysis failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    result = service.assess(body.profile.to_model(), body.owned())
    return {
        "gap": result.gap.to_dict(),
        "gap_label": gap_summary(result.gap),
        "gap_critical": is_gap_critical(result.gap),
        "tier": result.tier.to_dict(),
        "health": result.health.to_dict(),
        "health_summary": result.health_summary.to_dict() if result.health_summary else None,
        "analysis": result.analysis.to_dict(),
        "rotation_summary": [item.to_dict() for item in result.rotation_summary],
    }


@router.post("/discovery")
async def analyze_discovery(request: Request, body: DiscoveryBody):
    """Browse up to three archetypes with explicit feel preferences."""
    service, _ = _get_or_create_services(request)

    requests = [
        DiscoveryRequest(archetype=r.archetype, feel_preferences=r.feel_preferences.to_model())
        for r in body.requests
    ]
    try:
        results = service.discover(body.profile.to_model(), body.owned(), requests)
    except CatalogueUnavailableError as e:
        logger.error(f"Discovery failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except UnderConstrainedError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"discovery_results": [r.to_dict() for r in results]}
