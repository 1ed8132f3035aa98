"""Data models for face validation and smile restoration plans."""

from enum import Enum

from pydantic import BaseModel


class VariationType(str, Enum):
    """Scenes produced for a restoration plan."""

    ORIGINAL_BG = "original_bg"
    LIFESTYLE_SOCIAL = "lifestyle_social"
    LIFESTYLE_OUTDOOR = "lifestyle_outdoor"


class PromptData(BaseModel):
    """Structured image prompt for one variation."""

    Subject: str
    Composition: str
    Action: str
    Location: str
    Style: str
    Editing_Instructions: str
    Refining_Details: str | None = None
    Reference_Instructions: str | None = None


class Variation(BaseModel):
    """One scene of the restoration plan."""

    type: VariationType
    prompt_data: PromptData


class AnalysisResponse(BaseModel):
    """Restoration plan returned by the analysis model."""

    variations: list[Variation]

    def primary_variation(self) -> Variation | None:
        """The clinical restoration (original background) variation.

        Falls back to the first variation when the model omitted it.
        """
        for variation in self.variations:
            if variation.type == VariationType.ORIGINAL_BG:
                return variation
        return self.variations[0] if self.variations else None


class ValidationVerdict(BaseModel):
    """Gatekeeper verdict on an uploaded selfie."""

    is_valid: bool
    rejection_reason: str = ""
