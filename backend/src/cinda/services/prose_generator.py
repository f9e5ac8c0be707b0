"""Rotation prose from an external text-generation service.

The generator is a black box behind an OpenAI-compatible chat completions
endpoint. Every failure (no key, timeout, HTTP error, malformed output) falls
back to a deterministic template, so callers always get a ProseSummary.
"""

import json
import logging
from typing import Optional

import httpx

from cinda.models.analysis import RotationHealth, RotationSummaryItem, TierClassification
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.models.recommendations import ProseSummary

logger = logging.getLogger(__name__)

MIN_PROSE_LENGTH = 20
MAX_BULLETS = 3

SYSTEM_PROMPT = """You are Cinda, a running shoe expert who helps runners understand their shoe rotation.

Your tone is:
- Confident but not pushy
- Knowledgeable like a specialty running store employee
- Warm and encouraging
- Concise, no filler phrases

You must respond with valid JSON only, no markdown, no explanation."""

TIER_DESCRIPTIONS = {
    1: "Tier 1 = Genuine gap: they are missing something important",
    2: "Tier 2 = Room for improvement: basics covered but could be better",
    3: "Tier 3 = Solid rotation: suggest exploration or variety",
}

PLAIN_ENGLISH = {
    "general_fitness": "general fitness",
    "get_faster": "getting faster",
    "race_training": "race training",
    "injury_comeback": "injury comeback",
    "infrequent": "casual/infrequent running",
    "mostly_easy": "mostly easy runs",
    "structured_training": "structured training",
    "workout_focused": "workout focused",
    "all_runs": "all runs",
    "recovery": "recovery runs",
    "long_runs": "long runs",
    "trail": "trail running",
    "love": "loved",
    "like": "liked",
    "dislike": "disliked",
}


def plain_english(value: str) -> str:
    return PLAIN_ENGLISH.get(value, value.replace("_", " "))


def fallback_summary(
    health: RotationHealth,
    tier: TierClassification,
    shoe_count: int,
) -> ProseSummary:
    """Deterministic prose keyed by shoe count and overall health."""
    if shoe_count == 0:
        prose = "No shoes in your rotation yet. Let's find the right one to get you started."
    elif shoe_count == 1:
        outlook = (
            "There's room to build out your setup for your goals."
            if tier.tier == 1
            else "It's covering your basics."
        )
        prose = f"You have one shoe in your rotation. {outlook}"
    else:
        outlook = (
            "Your setup is working well."
            if health.overall >= 70
            else "There may be some gaps to address."
        )
        prose = f"You have {shoe_count} shoes in your rotation. {outlook}"

    strengths = []
    if health.coverage >= 70:
        strengths.append("Good coverage across your running needs")
    if health.goal_alignment >= 80:
        strengths.append("Rotation supports your training goal")
    if health.load_resilience >= 80:
        strengths.append("Enough shoes for your volume")

    return ProseSummary(
        prose=prose,
        strengths=strengths,
        improvements=[tier.primary.reason],
        source="fallback",
    )


class ProseGenerator:
    """Generates rotation prose, falling back to a template on any failure."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        timeout: float = 8.0,
        enabled: bool = True,
    ):
        """Initialize the prose generator.

        Args:
            api_key: Bearer token for the generator endpoint
            api_url: OpenAI-compatible chat completions URL
            model: Model identifier sent with each request
            timeout: Request timeout in seconds
            enabled: When False, always use the fallback
        """
        self.api_key = api_key
        self.api_url = api_url
        self.model_id = model
        self.timeout = timeout
        self.enabled = enabled and bool(api_key)
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def generate(
        self,
        health: RotationHealth,
        tier: TierClassification,
        owned_shoes: list[OwnedShoe],
        rotation_summary: list[RotationSummaryItem],
        profile: RunnerProfile,
    ) -> ProseSummary:
        """Describe the rotation in two or three sentences plus bullets."""
        fallback = fallback_summary(health, tier, len(owned_shoes))
        if not self.enabled:
            return fallback

        prompt = self._build_prompt(health, tier, owned_shoes, rotation_summary, profile)
        try:
            response = await self._call_llm(prompt)
        except Exception as e:
            logger.error(f"Prose generation failed: {e}")
            return fallback
        return self._parse_response(response, fallback)

    def _build_prompt(
        self,
        health: RotationHealth,
        tier: TierClassification,
        owned_shoes: list[OwnedShoe],
        rotation_summary: list[RotationSummaryItem],
        profile: RunnerProfile,
    ) -> str:
        by_id = {item.shoe_id: item for item in rotation_summary}
        lines = []
        for owned in owned_shoes:
            item = by_id.get(owned.shoe_id)
            name = item.full_name if item else owned.shoe_id
            used_for = ", ".join(plain_english(r) for r in owned.run_types) or "unspecified runs"
            line = f"- {name}: used for {used_for} ({plain_english(owned.sentiment)})."
            if item and item.archetypes:
                line += f" This shoe is a {', '.join(plain_english(a) for a in item.archetypes)}."
            if item and item.misuse_message:
                line += f"\n  MISUSE ({item.misuse_level}): {item.misuse_message}"
            if owned.love_tags:
                line += f"\n  Loves: {', '.join(owned.love_tags)}"
            if owned.dislike_tags:
                line += f"\n  Dislikes: {', '.join(owned.dislike_tags)}"
            lines.append(line)
        shoes_section = "\n".join(lines) if lines else "- No shoes added yet"

        volume = ""
        if profile.weekly_volume:
            volume = f"\n- Weekly volume: {profile.weekly_volume.value:g} {profile.weekly_volume.unit}"
        load_warning = " (LOW: not enough shoes for their volume, emphasize this)" if health.load_resilience < 70 else ""

        slots = "\n".join(
            f"{label} recommendation: {plain_english(slot.archetype)} - {slot.reason}"
            for label, slot in (("Primary", tier.primary), ("Secondary", tier.secondary))
            if slot is not None
        )

        return f"""Analyze this runner's shoe rotation and generate a summary.

## Runner Profile
- Experience: {profile.experience}
- Goal: {plain_english(profile.primary_goal)}
- Running pattern: {plain_english(profile.running_pattern)}{volume}

## Current Shoes
{shoes_section}

## Rotation Health Scores (0-100)
- Coverage: {health.coverage}
- Load Resilience: {health.load_resilience}{load_warning}
- Variety: {health.variety}
- Goal Alignment: {health.goal_alignment}
- Overall: {health.overall}

## Recommendation Tier
Tier {tier.tier} ({tier.confidence} confidence)
{TIER_DESCRIPTIONS[tier.tier]}
{slots}

## Your Task
1. prose: 2-3 sentences describing the rotation. Mention every shoe by name.
   Never mention scores or numbers from the health section.
2. strengths: 1-3 short, specific bullets of what is genuinely good.
3. improvements: 0-3 short actionable bullets ("Add a...", "Consider a...").
   For a complete rotation keep suggestions optional and light.

Respond with this exact JSON structure:
{{"prose": "string", "strengths": ["string"], "improvements": ["string"]}}"""

    async def _call_llm(self, prompt: str) -> dict:
        """Call the chat completions endpoint."""
        client = await self._get_client()

        response = await client.post(
            self.api_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model_id,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": 0.7,
                "max_tokens": 500,
            },
        )

        response.raise_for_status()
        return response.json()

    def _extract_json_from_response(self, content: str) -> dict:
        """Extract a JSON object from raw model output.

        Handles pure JSON, ```json fenced blocks, <think> blocks and
        leading/trailing chatter.
        """
        content = content.strip()

        if "<think>" in content:
            think_end = content.rfind("</think>")
            if think_end != -1:
                content = content[think_end + 8:].strip()

        if "```" in content:
            for part in content.split("```"):
                part = part.strip()
                if part.startswith("json"):
                    part = part[4:].strip()
                if part.startswith("{"):
                    content = part
                    break

        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end < start:
            raise ValueError("No JSON object found in response")
        return json.loads(content[start:end + 1])

    def _parse_response(self, response: dict, fallback: ProseSummary) -> ProseSummary:
        try:
            content = response["choices"][0]["message"]["content"]
            data = self._extract_json_from_response(content)
            return self._validate(data)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error in prose response: {e}")
            return fallback
        except Exception as e:
            logger.error(f"Failed to parse prose response: {e}")
            return fallback

    @staticmethod
    def _validate(data: dict) -> ProseSummary:
        """Check generator output shape.

        Raises:
            ValueError: If prose is too short or the bullet lists are not lists
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected dict, got {type(data)}")
        prose = data.get("prose")
        if not isinstance(prose, str) or len(prose) < MIN_PROSE_LENGTH:
            raise ValueError("Invalid prose")
        strengths = data.get("strengths", [])
        improvements = data.get("improvements", [])
        if not isinstance(strengths, list) or not isinstance(improvements, list):
            raise ValueError("Invalid strengths or improvements")
        return ProseSummary(
            prose=prose,
            strengths=[s for s in strengths if isinstance(s, str)][:MAX_BULLETS],
            improvements=[s for s in improvements if isinstance(s, str)][:MAX_BULLETS],
            source="generator",
        )
