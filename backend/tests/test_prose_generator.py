"""Tests for rotation prose generation and its fallback."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from cinda.models.analysis import RecommendationSlot, RotationHealth, RotationSummaryItem, TierClassification
from cinda.models.profile import OwnedShoe, WeeklyVolume
from cinda.services.prose_generator import ProseGenerator, fallback_summary

pytestmark = pytest.mark.anyio


class StubProseGenerator(ProseGenerator):
    """Returns a canned chat completion instead of calling the endpoint."""

    def __init__(self, content=None, error=None):
        super().__init__(api_key="test-key", api_url="http://generator.test/v1/chat", model="stub")
        self.content = content
        self.error = error
        self.prompts: list[str] = []

    async def _call_llm(self, prompt: str) -> dict:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return {"choices": [{"message": {"content": self.content}}]}


@pytest.fixture
def inputs(make_profile):
    health = RotationHealth(coverage=100, variety=50, load_resilience=100, goal_alignment=100, overall=95)
    tier = TierClassification(
        tier=3,
        confidence="soft",
        primary=RecommendationSlot(archetype="daily_trainer", reason="Try a bouncier daily trainer."),
    )
    owned = [
        OwnedShoe("nike_pegasus_41", run_types=("all_runs",), sentiment="love", love_tags=("bouncy",)),
        OwnedShoe("hoka_bondi_8", run_types=("recovery",)),
    ]
    summary = [
        RotationSummaryItem("nike_pegasus_41", "Nike Pegasus 41", ["all_runs"], ["daily_trainer"]),
        RotationSummaryItem("hoka_bondi_8", "HOKA Bondi 8", ["recovery"], ["recovery_shoe"]),
    ]
    profile = make_profile(weekly_volume=WeeklyVolume(25, "km"))
    return health, tier, owned, summary, profile


GOOD_JSON = (
    '{"prose": "Your Pegasus and Bondi make a well-balanced pair for easy mileage.", '
    '"strengths": ["Daily and recovery covered"], "improvements": []}'
)


class TestGenerate:
    async def test_generator_output(self, inputs):
        generator = StubProseGenerator(content=GOOD_JSON)
        result = await generator.generate(*inputs)
        assert result.source == "generator"
        assert result.prose.startswith("Your Pegasus and Bondi")
        assert result.strengths == ["Daily and recovery covered"]

    async def test_prompt_names_every_shoe(self, inputs):
        generator = StubProseGenerator(content=GOOD_JSON)
        await generator.generate(*inputs)
        prompt = generator.prompts[0]
        assert "Nike Pegasus 41: used for all runs (loved)" in prompt
        assert "HOKA Bondi 8" in prompt
        assert "Loves: bouncy" in prompt
        assert "Weekly volume: 25 km" in prompt

    async def test_fenced_and_thinking_output(self, inputs):
        content = f"<think>pondering</think>\nHere you go:\n```json\n{GOOD_JSON}\n```"
        result = await StubProseGenerator(content=content).generate(*inputs)
        assert result.source == "generator"

    @pytest.mark.parametrize("content", [
        "not json at all",
        '{"prose": "Too short"}',
        '{"prose": "Long enough prose for the validator to accept it.", "strengths": "oops"}',
    ])
    async def test_bad_output_falls_back(self, inputs, content):
        result = await StubProseGenerator(content=content).generate(*inputs)
        assert result.source == "fallback"

    async def test_http_error_falls_back(self, inputs):
        error = httpx.ConnectError("unreachable")
        result = await StubProseGenerator(error=error).generate(*inputs)
        assert result.source == "fallback"
        assert result.improvements == ["Try a bouncier daily trainer."]

    async def test_disabled_without_key(self, inputs):
        generator = ProseGenerator(api_key="", api_url="http://generator.test", model="stub")
        assert not generator.enabled
        result = await generator.generate(*inputs)
        assert result.source == "fallback"
        await generator.close()

    async def test_bullets_capped(self, inputs):
        content = (
            '{"prose": "A rotation that covers the basics nicely.", '
            '"strengths": ["a", "b", "c", "d"], "improvements": ["x", 1, "y"]}'
        )
        result = await StubProseGenerator(content=content).generate(*inputs)
        assert result.strengths == ["a", "b", "c"]
        assert result.improvements == ["x", "y"]

    async def test_timeout_falls_back(self, inputs):
        generator = ProseGenerator(api_key="test-key", api_url="http://generator.test", model="stub")
        with patch.object(generator, "_call_llm", AsyncMock(side_effect=httpx.ReadTimeout("slow"))) as call:
            result = await generator.generate(*inputs)
        call.assert_awaited_once()
        assert result.source == "fallback"


class TestFallbackSummary:
    def test_by_shoe_count(self):
        health = RotationHealth(coverage=50, variety=0, load_resilience=67, goal_alignment=50, overall=50)
        tier = TierClassification(
            tier=1,
            confidence="high",
            primary=RecommendationSlot(archetype="daily_trainer", reason="Need a daily."),
        )
        assert fallback_summary(health, tier, 0).prose.startswith("No shoes in your rotation yet")
        assert fallback_summary(health, tier, 1).prose.endswith("room to build out your setup for your goals.")
        assert fallback_summary(health, tier, 3).prose.endswith("There may be some gaps to address.")
        assert fallback_summary(health, tier, 3).strengths == []
