"""Prompt text for the smile design pipeline."""

import json
from typing import Any

VALIDATION_PROMPT = """
You are a strict biometric validator for a dental smile design app.
Decide whether the attached photo can be used for clinical smile design.

Reject the photo when any of these apply:
1. Non-human: cars, animals, cartoons, landscapes or objects. It must be a real person.
2. No face: the face is not clearly visible or is too far away.
3. Obstruction: the mouth is covered by hands, a mask, a phone or similar.
4. Angle: extreme profile views.
5. Quality: too dark, too blurry or pixelated.

Return only a JSON object:
{"is_valid": boolean, "rejection_reason": "string, at most 6 words, empty when valid"}
"""

ANALYSIS_PROMPT = """
ROLE: Dental morphologist and image prompt engineer.
TASK: Analyze the face using the eyes, nose and hairline as landmarks and produce
a restoration plan that harmonizes the smile with them.

Clinical rules:
1. Interpupillary line: the incisal plane must be parallel to the line through the pupils.
2. Nasal width: the alar base width positions the canines.
3. Facial midline: the dental midline aligns with the philtrum and nose tip.
4. Upper facial third: with heavy hair or brows, slightly increase central incisor dominance.
5. Golden proportion: central incisor width about 1.618x the visible lateral incisor width.

Return JSON with exactly three variations:
1. original_bg: the clinical restoration and source of truth. 9:16 vertical portrait,
   full head and shoulders visible, original or soft studio background. Editing
   instructions must apply the clinical rules above. Use the original photo only for
   identity, skin tone and lip shape.
2. lifestyle_social: the same person and identical smile, laughing at an upscale dinner.
   Reference the original_bg result for identity and dental geometry.
3. lifestyle_outdoor: the same person and identical smile, walking outdoors at golden hour.
   Reference the original_bg result for identity and dental geometry.

Every variation has prompt_data with Subject, Composition, Action, Location, Style,
Editing_Instructions and, where useful, Refining_Details and Reference_Instructions.
"""

GENERATED_IMAGE_QA_PROMPT = """
Act as a quality assurance photographer. Check the attached image for these failures:
1. An extreme close-up of only the mouth or teeth.
2. The forehead or eyes cut out of the frame.
3. A horizontal instead of vertical aspect ratio.

Answer exactly PASS if the image shows the full face (eyes, nose, mouth, chin) and
shoulders in a vertical format, otherwise answer exactly FAIL.
"""

VIDEO_NEGATIVE_PROMPT = (
    "morphing face, changing teeth, closing mouth, distortion, cartoon, low quality, "
    "glitchy motion, talking, flashing lights, extra limbs, blurry face, flickering teeth, "
    "floating objects"
)

_VIDEO_BASE_SCENE = (
    "The smile is wide, prominent, and stable, keeping the exact dental structure and "
    "whiteness of the input image. Cinematic vertical video. High quality, photorealistic, 4k."
)

VIDEO_SCENARIOS = {
    "18-30": (
        "The subject from the input image comes to life, laughing naturally with friends "
        "in a green park on a sunny afternoon. The head tilts slightly back in joy."
    ),
    "55+": (
        "The subject from the input image comes to life at a warm family birthday dinner, "
        "surrounded by loved ones and smiling with deep happiness."
    ),
    "30-55": (
        "The subject from the input image comes to life on a stylish urban rooftop at "
        "sunset after work, holding a drink and chatting naturally in the evening glow."
    ),
}

DEFAULT_AGE_RANGE = "30-55"


def build_smile_prompt(prompt_options: dict[str, Any] | None) -> str:
    """Build the image-edit prompt from a variation's prompt data."""
    options = prompt_options or {}
    lines = [
        "Generate a photorealistic image of the person in the attached photo.",
        "Replace the teeth with a natural, high quality restoration and keep the face "
        "structure and identity exactly the same.",
    ]
    for key in (
        "Subject",
        "Composition",
        "Action",
        "Location",
        "Style",
        "Editing_Instructions",
        "Refining_Details",
        "Reference_Instructions",
    ):
        value = options.get(key)
        if value:
            lines.append(f"{key.replace('_', ' ')}: {value}")

    extra = {k: v for k, v in options.items() if not k[:1].isupper()}
    if extra:
        lines.append(f"Target: {json.dumps(extra, sort_keys=True)}")
    return "\n".join(lines)


def resolve_age_range(survey_data: dict[str, Any] | None) -> str:
    """Return the survey age range, or the default scenario key."""
    age_range = (survey_data or {}).get("ageRange") or DEFAULT_AGE_RANGE
    return age_range if age_range in VIDEO_SCENARIOS else DEFAULT_AGE_RANGE


def build_video_prompt(age_range: str) -> str:
    """Build the Veo scenario prompt for an age range."""
    scenario = VIDEO_SCENARIOS.get(age_range, VIDEO_SCENARIOS[DEFAULT_AGE_RANGE])
    return f"{scenario} {_VIDEO_BASE_SCENE}"
