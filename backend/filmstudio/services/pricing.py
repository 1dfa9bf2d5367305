"""Pricing registry, pre-flight cost estimates and the approval guardrail.

No AI generation runs without an estimate; anything above the approval
threshold must be explicitly approved by the caller (``force`` flag on the
API side).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from filmstudio.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_MODEL_KEY = "default-image"

# USD per unit (image, second of video, or call)
PRICING_REGISTRY: dict[str, float] = {
    # Image models
    "black-forest-labs/flux-pro": 0.055,
    "stability-ai/sdxl": 0.020,
    "stability-ai/sd-turbo": 0.005,
    # Video models
    "stability-ai/stable-video-diffusion": 0.20,
    "replicate/cogvideox-5b": 0.15,
    "google/veo": 0.10,
    # Audio models
    "elevenlabs/tts": 0.010,
    "haoheliu/audioldm-2": 0.015,
    # LLM models
    "gemini-1.5-pro": 0.050,
    "gemini-1.5-flash": 0.005,
    "google/gemini-1.5-pro": 0.050,
    DEFAULT_MODEL_KEY: 0.05,
}

# Fixed costs the director charges per breakdown item
SCRIPT_ANALYSIS_COST = 0.05
SHOT_BREAKDOWN_COST = 0.02
SHOT_IMAGE_COST = 0.04

VIDEO_RATES: dict[str, dict[str, Any]] = {
    "veo3": {
        "per_second": 0.10,
        "resolution": {"720p": 1.0, "1080p": 1.5, "4k": 2.5},
        "quality_premium": 1.0,
        "base_minutes": 2,
    },
    "sora": {
        "per_second": 0.15,
        "resolution": {"720p": 1.0, "1080p": 1.3, "4k": 2.0},
        "quality_premium": 1.2,
        "base_minutes": 3,
    },
}


class CostApprovalRequired(Exception):
    """Raised when an estimated cost exceeds the approval threshold."""

    def __init__(self, estimated_cost: float, threshold: float):
        super().__init__(
            f"Financial Guardrail: Cost ${estimated_cost:.4f} exceeds "
            f"manual approval limit (${threshold})."
        )
        self.estimated_cost = estimated_cost
        self.threshold = threshold
        self.requires_approval = True


def round_money(value: float, places: int = 4) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def unit_price(model_id: str) -> float:
    price = PRICING_REGISTRY.get(model_id)
    if price is None:
        logger.warning("Unknown model %s, using default price", model_id)
        price = PRICING_REGISTRY[DEFAULT_MODEL_KEY]
    return price


def estimate_cost(model_id: str, quantity: float = 1) -> float:
    """Estimated USD for ``quantity`` units of ``model_id``, 4 decimal places."""
    total = unit_price(model_id) * quantity
    if total < 0:
        return 0.0
    return round_money(total, 4)


def requires_approval(estimated_cost: float) -> bool:
    return estimated_cost > settings.COST_APPROVAL_THRESHOLD


def validate_cost(estimated_cost: float, approved: bool = False) -> None:
    if requires_approval(estimated_cost) and not approved:
        logger.info(
            "Cost $%.4f blocked pending approval (threshold $%s)",
            estimated_cost, settings.COST_APPROVAL_THRESHOLD,
        )
        raise CostApprovalRequired(estimated_cost, settings.COST_APPROVAL_THRESHOLD)


# ---------------------------------------------------------------------------
# Video estimates
# ---------------------------------------------------------------------------

@dataclass
class VideoCostEstimate:
    provider: str
    duration: int
    resolution: str
    base_cost: float
    resolution_multiplier: float
    total_cost: float
    estimated_time: str
    currency: str = "USD"


def estimate_generation_time(provider: str, duration: int) -> str:
    total_minutes = VIDEO_RATES[provider]["base_minutes"] + math.ceil(duration / 10)
    if total_minutes < 60:
        return f"{total_minutes} minutes"
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def estimate_video_cost(provider: str, duration: int, resolution: str = "1080p") -> VideoCostEstimate:
    """Per-clip estimate for Veo3 or Sora, 2 decimal places."""
    if provider not in VIDEO_RATES:
        raise ValueError(f"No video pricing for provider '{provider}'")
    rates = VIDEO_RATES[provider]
    multiplier = rates["resolution"].get(resolution, 1.0)
    base_cost = rates["per_second"] * duration
    total = base_cost * multiplier * rates["quality_premium"]
    return VideoCostEstimate(
        provider=provider,
        duration=duration,
        resolution=resolution,
        base_cost=round_money(base_cost, 4),
        resolution_multiplier=multiplier,
        total_cost=round_money(total, 2),
        estimated_time=estimate_generation_time(provider, duration),
    )


def estimate_project_video_cost(
    shot_count: int, average_duration: int = 4, resolution: str = "1080p"
) -> dict[str, Any]:
    """Compare Veo3 and Sora for a whole project of ``shot_count`` clips."""
    veo3 = round_money(estimate_video_cost("veo3", average_duration, resolution).total_cost * shot_count, 2)
    sora = round_money(estimate_video_cost("sora", average_duration, resolution).total_cost * shot_count, 2)
    savings = round_money(abs(veo3 - sora), 2)
    highest = max(veo3, sora)
    return {
        "total_shots": shot_count,
        "average_duration": average_duration,
        "resolution": resolution,
        "veo3": veo3,
        "sora": sora,
        "cheaper": "sora" if sora < veo3 else "veo3",
        "savings": savings,
        "savings_percent": round(savings / highest * 100) if highest else 0,
    }


def recommend_provider(
    duration: int, resolution: str = "1080p", prioritize_speed: bool = False
) -> str:
    if prioritize_speed:
        return "veo3"
    veo3 = estimate_video_cost("veo3", duration, resolution).total_cost
    sora = estimate_video_cost("sora", duration, resolution).total_cost
    return "veo3" if veo3 <= sora else "sora"


def estimate_video_job(provider: str, duration: int, resolution: str = "720p") -> float:
    """Cost of one video job on any provider the studio drives."""
    if provider in VIDEO_RATES:
        return estimate_video_cost(provider, duration, resolution).total_cost
    return estimate_cost(settings.REPLICATE_VIDEO_MODEL, 1)
