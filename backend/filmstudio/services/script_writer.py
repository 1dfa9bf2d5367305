from __future__ import annotations
"""Script writer — synopsis, screenplay, refinement, visual style and breakdowns.

Uses the OpenRouter LLM client with system prompts from PromptManager.
In mock mode, returns canned responses so the studio runs without keys.
"""

import logging
from typing import Any

from filmstudio.config import get_settings
from filmstudio.prompts import PromptManager
from filmstudio.services.llm_client import llm_call, parse_json_response

logger = logging.getLogger(__name__)
settings = get_settings()

SHOT_FIELDS = ("shot_type", "movement", "action", "intent", "technique", "lighting", "audio")

# Shot lists written before the English keys were introduced
_LEGACY_SHOT_KEYS = {
    "tipo_plano": "shot_type",
    "movimiento": "movement",
    "accion": "action",
    "intencion": "intent",
    "tecnica": "technique",
    "iluminacion": "lighting",
}


def _with_directives(body: str, director_notes: str | None, label: str = "Director's Directives") -> str:
    if director_notes:
        return f"{body}\n\n{label}:\n{director_notes}"
    return body


async def generate_synopsis(
    brief: str, director_notes: str | None = None, style: str | None = None
) -> str:
    """Turn a project brief into a structured film synopsis."""
    if settings.USE_MOCK_API:
        return _mock_synopsis(brief)

    user_prompt = _with_directives(f"Project Brief:\n{brief}", director_notes)
    return await _call_writer(
        PromptManager.get_prompt("synopsis", style),
        f"{user_prompt}\n\nPlease write a detailed film synopsis.",
    )


async def generate_script(
    *,
    synopsis: str | None = None,
    brief: str | None = None,
    director_notes: str | None = None,
    style: str | None = None,
) -> str:
    """Write a screenplay, expanding the synopsis if given, else the brief.

    Raises:
        ValueError: If neither a synopsis nor a brief is provided.
    """
    if not synopsis and not brief:
        raise ValueError("A synopsis or a brief is required to generate a script")

    if settings.USE_MOCK_API:
        return _mock_script(synopsis or brief or "")

    if synopsis:
        system_prompt = PromptManager.get_prompt("script_from_synopsis", style)
        user_prompt = _with_directives(f"Synopsis:\n{synopsis}", director_notes)
        user_prompt += "\n\nPlease write the complete film script."
    else:
        system_prompt = PromptManager.get_prompt("script_from_brief", style)
        user_prompt = _with_directives(
            f"Project Brief:\n{brief}", director_notes, "Director's Directives (Apply project-wide)"
        )
        user_prompt += (
            "\n\nPlease write a detailed, cinematographic film script that strictly "
            "follows the brief and directives."
        )
    return await _call_writer(system_prompt, user_prompt)


async def refine_script(
    script: str, notes: str, director_notes: str | None = None, style: str | None = None
) -> str:
    if settings.USE_MOCK_API:
        return f"{script.rstrip()}\n\n[REVISED: {notes}]"

    user_prompt = f"Current Script:\n{script}\n\nRefinement Notes:\n{notes}"
    user_prompt = _with_directives(user_prompt, director_notes, "Persistent Directives")
    user_prompt += (
        "\n\nPlease refine the script while keeping the core vision intact "
        "and following the directives."
    )
    return await _call_writer(PromptManager.get_prompt("refine_script", style), user_prompt)


async def generate_visual_style(
    script: str, director_notes: str | None = None, style: str | None = None
) -> str:
    """Master visual style guide: palette, lighting, camera language."""
    if settings.USE_MOCK_API:
        return (
            "Cinematic film still, high quality. Anamorphic 2.39:1 framing, "
            "teal-and-amber palette, soft volumetric key light, slow deliberate camera."
        )

    user_prompt = _with_directives(
        f"Based on this script, create a detailed visual style guide:\n{script}", director_notes
    )
    return await _call_writer(PromptManager.get_prompt("visual_style", style), user_prompt)


async def break_script_into_scenes(script: str, style: str | None = None) -> list[dict[str, Any]]:
    """Split a screenplay into ordered scenes: [{order, title, description}].

    An unparsable model response yields an empty list.
    """
    if settings.USE_MOCK_API:
        return _mock_scenes()

    content = await _call_writer(
        PromptManager.get_prompt("scene_breakdown", style),
        f"Screenplay:\n\n{script}",
        json_mode=True,
    )
    return parse_scenes(content)


async def generate_shot_list(
    scene_context: str,
    visual_style: str | None = None,
    director_notes: str | None = None,
    brand_context: str | None = None,
    style: str | None = None,
) -> list[dict[str, Any]]:
    """Technical shot list for one scene.

    Each item has ``shot`` plus the keys in ``SHOT_FIELDS``.
    """
    if settings.USE_MOCK_API:
        return _mock_shots(scene_context)

    system_prompt = PromptManager.get_prompt("shot_list", style)
    if brand_context:
        system_prompt += (
            f"\n\n### BRAND GUIDELINES ###\n{brand_context}\n\n"
            "Strictly follow the brand voice and aesthetic rules for every shot."
        )
    user_prompt = (
        "Break down this script into a technical shot list based on the visual style: "
        f"{visual_style or 'Cinematic film still, high quality.'}"
    )
    user_prompt = _with_directives(user_prompt, director_notes)
    user_prompt += f"\n\nScript:\n{scene_context}"

    content = await _call_writer(system_prompt, user_prompt, json_mode=True)
    return parse_shot_list(content)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def parse_scenes(content: str) -> list[dict[str, Any]]:
    data = parse_json_response(content)
    if isinstance(data, dict):
        data = data.get("scenes")
    if not isinstance(data, list):
        return []

    scenes: list[dict[str, Any]] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        scenes.append({
            "order": _as_int(item.get("order"), index + 1),
            "title": item.get("title") or f"Scene {index + 1}",
            "description": item.get("description") or "",
        })
    return scenes


def parse_shot_list(content: str) -> list[dict[str, Any]]:
    """Accept a bare array, a "shots" key, or any array of objects carrying "shot"."""
    data = parse_json_response(content)
    shots: Any = None
    if isinstance(data, list):
        shots = data
    elif isinstance(data, dict):
        if isinstance(data.get("shots"), list):
            shots = data["shots"]
        else:
            shots = next(
                (
                    v for v in data.values()
                    if isinstance(v, list) and v and isinstance(v[0], dict) and "shot" in v[0]
                ),
                None,
            )
    if not shots:
        return []
    return [normalize_shot(s, i) for i, s in enumerate(shots) if isinstance(s, dict)]


def normalize_shot(raw: dict[str, Any], index: int = 0) -> dict[str, Any]:
    shot: dict[str, Any] = {"shot": _as_int(raw.get("shot"), index + 1)}
    for legacy, key in _LEGACY_SHOT_KEYS.items():
        if key not in raw and legacy in raw:
            raw = {**raw, key: raw[legacy]}
    for key in SHOT_FIELDS:
        value = raw.get(key)
        shot[key] = str(value) if value is not None else None
    return shot


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


async def _call_writer(system_prompt: str, user_prompt: str, json_mode: bool = False) -> str:
    return await llm_call(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        json_mode=json_mode,
        caller="script_writer",
    )


# ---------------------------------------------------------------------------
# Mock implementations (USE_MOCK_API=True)
# ---------------------------------------------------------------------------

def _mock_synopsis(brief: str) -> str:
    return (
        f"SYNOPSIS\n\nBased on the brief: {brief.strip()}\n\n"
        "Protagonist: Maya, a night-shift engineer who trusts machines more than people.\n"
        "Inciting Incident: the city's lights start spelling out her name.\n"
        "Core Conflict: to stop the signal she must ask a stranger for help.\n"
        "Resolution: the message was an invitation; she answers it."
    )


def _mock_script(source: str) -> str:
    return (
        "INT. CONTROL ROOM - NIGHT\n\n"
        "Banks of monitors. MAYA (30s) leans into the glow.\n\n"
        "MAYA\nThat's not a glitch.\n\n"
        "EXT. ROOFTOP - DAWN\n\n"
        "Maya watches the skyline blink in sequence. CLOSE-UP on her trembling hand.\n\n"
        f"[Source: {source.strip()[:200]}]"
    )


def _mock_scenes() -> list[dict[str, Any]]:
    return [
        {
            "order": 1,
            "title": "INT. CONTROL ROOM - NIGHT",
            "description": "Maya notices the monitors repeating a pattern.",
        },
        {
            "order": 2,
            "title": "EXT. ROOFTOP - DAWN",
            "description": "Maya watches the skyline answer her.",
        },
    ]


def _mock_shots(scene_context: str) -> list[dict[str, Any]]:
    return [
        {
            "shot": 1,
            "shot_type": "Wide Shot",
            "movement": "Slow Dolly In",
            "action": f"Establishing: {scene_context.strip()[:120]}",
            "intent": "Context/Isolation",
            "technique": "35mm, f/2.8",
            "lighting": "Low Key, monitor glow",
            "audio": "Electrical hum",
        },
        {
            "shot": 2,
            "shot_type": "Close-Up",
            "movement": "Static",
            "action": "Maya's eyes track the pattern",
            "intent": "Intimacy/Realization",
            "technique": "85mm, f/1.4, Film Grain",
            "lighting": "Rembrandt",
            "audio": "Heartbeat, distant traffic",
        },
    ]
