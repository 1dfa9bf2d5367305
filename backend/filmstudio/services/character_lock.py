"""Character lock — pins a reference character, product and brand into every prompt.

Two prompt families live here:

* Image/video generation prompts built from a ``CharacterLockConfig``
  (``build_locked_prompt`` and ``build_motion_prompt``).
* Storyboard shot prompts built from the project's locked character and the
  brand identity stored in the Project Bible (``build_shot_prompt``,
  ``build_variation_prompts``, ``build_frame_descriptor``).

Everything is plain string templating: optional sections are included only
when their input is present. No I/O, no state.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

DEFAULT_PALETTE: dict[str, str] = {
    "primary": "#0088cc",
    "secondary": "#00ccff",
    "accent": "#ff6600",
    "neutral": "#333333",
}

DEFAULT_MOOD = "Professional and cinematic"

VARIATION_MODIFIERS: tuple[str, ...] = (
    "Wide shot with dramatic lighting",
    "Close-up with soft lighting",
    "Medium shot with natural lighting",
    "Over-the-shoulder shot with warm lighting",
    "Dutch angle with moody lighting",
)

FRAME_CONSTRAINTS: tuple[str, ...] = (
    "Character appearance is immutable - must match reference image exactly",
    "Composition must match storyboard frame",
    "Lighting must match storyboard mood",
    "Color palette must respect brand identity",
    "Video animation can only add movement, not change visual elements",
)


@dataclass
class BrandPalette:
    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None


@dataclass
class CharacterLockConfig:
    """Reference material pinned into a generation prompt."""

    character_id: int
    character_image_url: str
    character_description: str
    product_reference_url: str | None = None
    brand_color_palette: BrandPalette | None = None


@dataclass
class LockedGenerationPrompt:
    base_prompt: str
    character_reference: str
    product_reference: str | None
    style_guidelines: str
    full_prompt: str


@dataclass
class LockValidation:
    is_valid: bool
    issues: list[str] = field(default_factory=list)


@dataclass
class LockedCharacter:
    """The parts of a locked character that storyboard prompts need."""

    name: str
    description: str = ""
    image_url: str | None = None


@dataclass
class BrandIdentity:
    """Brand constraints: a linked brand, or the ``brand`` key of a Project Bible."""

    voice: str | None = None
    visual_identity: str | None = None
    color_palette: dict[str, str] | None = None

    @classmethod
    def from_bible(cls, bible: dict[str, Any] | None) -> BrandIdentity | None:
        brand = (bible or {}).get("brand")
        if not isinstance(brand, dict) or not brand:
            return None
        palette = brand.get("color_palette")
        return cls(
            voice=brand.get("voice"),
            visual_identity=brand.get("visual_identity"),
            color_palette=palette if isinstance(palette, dict) else None,
        )

    @classmethod
    def from_brand(cls, brand: Any) -> BrandIdentity:
        """Identity of a stored brand; its aesthetic stands in for a missing visual identity."""
        palette = brand.color_palette if isinstance(brand.color_palette, dict) else None
        return cls(
            voice=brand.brand_voice,
            visual_identity=brand.visual_identity or brand.aesthetic,
            color_palette={k: str(v) for k, v in palette.items()} if palette else None,
        )

    def palette_value(self, key: str) -> str:
        return (self.color_palette or {}).get(key) or DEFAULT_PALETTE[key]


# ---------------------------------------------------------------------------
# Generation prompts
# ---------------------------------------------------------------------------

def build_locked_prompt(
    base_prompt: str, config: CharacterLockConfig
) -> LockedGenerationPrompt:
    """Wrap ``base_prompt`` with character, product and style lock blocks."""
    character_reference = (
        "\nCRITICAL - CHARACTER LOCK:\n"
        f"- Use this exact character appearance: {config.character_description}\n"
        f"- Reference image: {config.character_image_url}\n"
        "- Maintain identical facial features, clothing style, and appearance across all shots\n"
        "- DO NOT vary the character's appearance, expression, or styling\n"
    )

    product_block = ""
    if config.product_reference_url:
        product_block = (
            "\nPRODUCT REFERENCE:\n"
            f"- Include this product in the shot: {config.product_reference_url}\n"
            "- Maintain consistent product appearance and positioning\n"
        )

    primary = None
    if config.brand_color_palette is not None:
        primary = config.brand_color_palette.primary
    style_guidelines = (
        "\nSTYLE CONSISTENCY:\n"
        "- Maintain consistent lighting and color grading\n"
        f"- Use brand colors: Primary {primary or 'not specified'}\n"
        "- Keep visual language consistent with brand identity\n"
        "- Maintain same camera perspective and composition style\n"
    )

    full_prompt = (
        f"\n{base_prompt}\n\n"
        f"{character_reference}\n"
        f"{product_block}\n"
        f"{style_guidelines}\n\n"
        "GENERATION RULES:\n"
        "1. Character must be IDENTICAL to reference image\n"
        "2. Product must be IDENTICAL to reference image\n"
        "3. Do not create variations or alternative interpretations\n"
        "4. Maintain exact consistency with previous shots\n"
        "5. Use reference images as strict visual anchors\n"
    )

    return LockedGenerationPrompt(
        base_prompt=base_prompt,
        character_reference=character_reference,
        product_reference=config.product_reference_url,
        style_guidelines=style_guidelines,
        full_prompt=full_prompt.strip(),
    )


def build_motion_prompt(motion_description: str, config: CharacterLockConfig) -> str:
    """Image-to-video prompt that animates the locked frame without changing the character."""
    return (
        "\nSTART FRAME: Reference the locked character image exactly as provided\n"
        "CHARACTER CONSTRAINT: Keep character appearance IDENTICAL throughout the motion\n"
        f"MOTION: {motion_description}\n"
        "\n"
        "CRITICAL RULES:\n"
        "- Character must not change appearance during motion\n"
        "- Facial features must remain consistent\n"
        "- Clothing and styling must not change\n"
        "- Only animate movement, not appearance changes\n"
        "- Maintain brand visual identity throughout\n"
    )


def validate_character_lock(image_url: str, config: CharacterLockConfig) -> LockValidation:
    # TODO: compare image_url against config.character_image_url with a vision model
    return LockValidation(is_valid=True)


def lock_config_for(
    character_id: int,
    image_url: str | None,
    description: str | None,
    product_reference_url: str | None = None,
    bible: dict[str, Any] | None = None,
    brand: BrandIdentity | None = None,
) -> CharacterLockConfig:
    """Assemble a lock config from a stored character and its project's brand.

    ``brand`` wins over the ``brand`` key of the bible.
    """
    brand = brand or BrandIdentity.from_bible(bible)
    palette = None
    if brand is not None and brand.color_palette:
        palette = BrandPalette(
            primary=brand.color_palette.get("primary"),
            secondary=brand.color_palette.get("secondary"),
            accent=brand.color_palette.get("accent"),
        )
    return CharacterLockConfig(
        character_id=character_id,
        character_image_url=image_url or "",
        character_description=description or "",
        product_reference_url=product_reference_url,
        brand_color_palette=palette,
    )


# ---------------------------------------------------------------------------
# Storyboard prompts
# ---------------------------------------------------------------------------

def character_reference_text(character: LockedCharacter) -> str:
    return (
        f"Character: {character.name}. Appearance: {character.description}. "
        "This character must appear exactly as shown in the reference image "
        "and maintain consistency across all shots."
    )


def brand_constraints_text(brand: BrandIdentity) -> str:
    return (
        f"Brand Identity: Voice - {brand.voice}. "
        f"Visual Style - {brand.visual_identity}. "
        f"Color Palette - Primary: {brand.palette_value('primary')}, "
        f"Secondary: {brand.palette_value('secondary')}, "
        f"Accent: {brand.palette_value('accent')}. "
        "All generated content must respect this brand identity."
    )


def build_shot_prompt(
    shot_description: str,
    character: LockedCharacter | None = None,
    brand: BrandIdentity | None = None,
) -> str:
    """Storyboard prompt with immutable character and brand sections."""
    parts = ["Shot Description:", shot_description, ""]

    if character is not None:
        parts += ["CHARACTER LOCK (IMMUTABLE):", character_reference_text(character), ""]

    if brand is not None:
        parts += ["BRAND CONSTRAINTS (IMMUTABLE):", brand_constraints_text(brand), ""]

    parts += [
        "GENERATION RULES:",
        "- Maintain exact character appearance from reference image",
        "- Respect brand visual identity and color palette",
        "- Never invent or modify character appearance",
        "- Ensure composition matches shot description",
        "- Use professional cinematography techniques",
    ]
    return "\n".join(parts)


def variation_modifier(index: int) -> str:
    return VARIATION_MODIFIERS[index % len(VARIATION_MODIFIERS)]


def build_variation_prompts(
    shot_description: str,
    count: int = 3,
    character: LockedCharacter | None = None,
    brand: BrandIdentity | None = None,
) -> list[str]:
    return [
        build_shot_prompt(
            f"{shot_description} (Variation {i + 1}: {variation_modifier(i)})",
            character,
            brand,
        )
        for i in range(count)
    ]


def build_frame_descriptor(
    character: LockedCharacter | None = None,
    brand: BrandIdentity | None = None,
) -> dict[str, Any]:
    """Frozen visual specification handed to video models alongside a storyboard frame."""
    if character is not None:
        characters = [{
            **asdict(character),
            "locked": True,
            "note": f"{character.name}: {character.description} - LOCKED, do not modify",
        }]
    else:
        characters = []

    if brand is not None and brand.color_palette:
        palette = dict(brand.color_palette)
    else:
        palette = dict(DEFAULT_PALETTE)

    return {
        "composition": "As shown in storyboard frame - do not modify",
        "lighting": "As shown in storyboard frame - do not modify",
        "characters": characters,
        "mood": (brand.visual_identity if brand is not None else None) or DEFAULT_MOOD,
        "color_palette": palette,
        "constraints": list(FRAME_CONSTRAINTS),
    }
