"""Diagnostic logging for recommendation pipeline runs.

Captures what each stage decided for one request (classification, relaxation,
selection) so a run can be replayed by reading a JSON file instead of
re-deriving it from log lines. Files are write-only output.

Usage:
    from cinda.services.pipeline_logger import PipelineLogger

    diagnostics = PipelineLogger()
    diagnostics.start_session("analyze", {"owned_shoes": 2})
    diagnostics.log_classification(tier.to_dict(), gap.to_dict(), health.to_dict())
    diagnostics.log_relaxation([step.to_dict() for step in steps])
    diagnostics.log_selection("daily_trainer", candidates, picks)
    diagnostics.save()
"""
import json
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from cinda.config import settings

module_logger = logging.getLogger("cinda.pipeline_diagnostics")


def _default_output_dir() -> Path:
    path = Path(settings.diagnostics_dir)
    if path.is_absolute():
        return path
    return Path(__file__).parents[4] / path


class PipelineLogger:
    """Captures per-request pipeline diagnostics."""

    def __init__(self, output_dir: Optional[Path] = None, enabled: Optional[bool] = None):
        """Initialize pipeline logger.

        Args:
            output_dir: Directory to save diagnostic files. Defaults to settings.diagnostics_dir
            enabled: Whether logging is active. Defaults to settings.diagnostics_enabled;
                the CINDA_DIAGNOSTICS env var overrides both.
        """
        if enabled is None:
            enabled = settings.diagnostics_enabled
        env_enabled = os.environ.get("CINDA_DIAGNOSTICS", "").lower()
        if env_enabled == "true":
            enabled = True
        elif env_enabled == "false":
            enabled = False

        self.enabled = enabled
        self.output_dir = output_dir or _default_output_dir()
        self.entries: list[dict] = []
        self.session_id: str = ""
        self.mode: str = ""
        self._metadata: dict = {}

        if self.enabled:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def start_session(self, mode: str, request_summary: Optional[dict] = None):
        """Begin diagnostics for one request.

        Args:
            mode: "analyze", "gap" or "discovery"
            request_summary: Compact description of the request (counts, goal, intent)
        """
        if not self.enabled:
            return

        self.session_id = uuid.uuid4().hex
        self.mode = mode
        self.entries = []
        self._metadata = {
            "session_id": self.session_id,
            "mode": mode,
            "started_at": datetime.now().isoformat(),
        }
        self.entries.append({
            "event": "request",
            "timestamp": datetime.now().isoformat(),
            **(request_summary or {}),
        })

    def log_classification(self, tier: dict, gap: dict, health: dict):
        if not self.enabled:
            return

        self.entries.append({
            "event": "classification",
            "timestamp": datetime.now().isoformat(),
            "tier": tier.get("tier"),
            "confidence": tier.get("confidence"),
            "tier_reason": tier.get("tier_reason"),
            "primary": (tier.get("primary") or {}).get("archetype"),
            "secondary": (tier.get("secondary") or {}).get("archetype"),
            "gap": gap,
            "health": health,
        })

    def log_relaxation(self, steps: list[dict]):
        """Log the relaxation steps that fired (no entry when none did)."""
        if not self.enabled or not steps:
            return

        self.entries.append({
            "event": "relaxation",
            "timestamp": datetime.now().isoformat(),
            "steps": steps,
        })

    def log_selection(self, archetype: str, candidates: list, picks: list):
        """Log the scored pool and the shoes chosen from it.

        Args:
            archetype: Slot archetype being filled
            candidates: ScoredCandidate list in ranked order
            picks: RecommendedShoe list in display order
        """
        if not self.enabled:
            return

        self.entries.append({
            "event": "selection",
            "timestamp": datetime.now().isoformat(),
            "archetype": archetype,
            "candidates_evaluated": len(candidates),
            "top_candidates": [
                {
                    "rank": i + 1,
                    "shoe_id": c.shoe.shoe_id,
                    "score": c.score,
                    "breakdown": c.breakdown,
                }
                for i, c in enumerate(candidates[:10])  # Top 10 only
            ],
            "picks": [
                {"shoe_id": p.shoe_id, "badge": p.badge, "position": p.position}
                for p in picks
            ],
        })

    def log_error(self, error_message: str):
        if not self.enabled:
            return

        self.entries.append({
            "event": "error",
            "timestamp": datetime.now().isoformat(),
            "error": error_message,
        })
        module_logger.error(f"Pipeline error logged: {error_message[:200]}")

    def save(self) -> Optional[Path]:
        """Save diagnostics to JSON file.

        Returns:
            Path to saved file, or None if disabled/empty
        """
        if not self.enabled or not self.entries:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{self.mode}_{self.session_id[:8]}_{timestamp}.json"
        output_path = self.output_dir / filename

        with open(output_path, "w") as f:
            json.dump({
                "metadata": self._metadata,
                "summary": self._compute_summary(),
                "entries": self.entries,
            }, f, indent=2)

        module_logger.info(f"Pipeline diagnostics saved: {output_path}")
        return output_path

    def _compute_summary(self) -> dict:
        classification = next((e for e in self.entries if e["event"] == "classification"), {})
        relaxations = [
            step["step"]
            for e in self.entries if e["event"] == "relaxation"
            for step in e["steps"]
        ]
        selections = [e for e in self.entries if e["event"] == "selection"]
        return {
            "tier": classification.get("tier"),
            "relaxation_steps": relaxations,
            "slots_filled": len(selections),
            "shoes_recommended": [p["shoe_id"] for e in selections for p in e["picks"]],
            "errors": sum(1 for e in self.entries if e["event"] == "error"),
        }
