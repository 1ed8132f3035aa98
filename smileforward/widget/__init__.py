"""Client library driving the selfie-to-smile wizard against the Smile Forward API."""

from smileforward.widget.client import ApiResult, LeadForm, SurveyForm, WidgetApiClient
from smileforward.widget.config import WidgetConfig
from smileforward.widget.poller import VideoJobPoller
from smileforward.widget.wizard import (
    InvalidTransition,
    ProcessingPhase,
    WizardController,
    WizardSession,
    WizardStep,
)

__all__ = [
    "ApiResult",
    "InvalidTransition",
    "LeadForm",
    "ProcessingPhase",
    "SurveyForm",
    "VideoJobPoller",
    "WidgetApiClient",
    "WidgetConfig",
    "WizardController",
    "WizardSession",
    "WizardStep",
]
