"""
deckshare/schemas/__init__.py
스키마 통합 export

    from deckshare.schemas import Template, Slide, CustomizationRequest, ...
"""

# ── Enums ────────────────────────────────────────────────
from deckshare.schemas.enums import (
    CustomizationLevel,
    InstanceStatus,
    QuestionType,
    SlideVariant,
)

# ── Template ─────────────────────────────────────────────
from deckshare.schemas.template import (
    Feature,
    QuestionOption,
    Slide,
    SlideQuestion,
    Template,
)

# ── Customization ────────────────────────────────────────
from deckshare.schemas.customization import (
    Answer,
    CustomizationFields,
    CustomizationRecord,
    CustomizationRequest,
    CustomQuestion,
    RequiredCheck,
)

__all__ = [
    "CustomizationLevel",
    "InstanceStatus",
    "QuestionType",
    "SlideVariant",
    "Feature",
    "QuestionOption",
    "Slide",
    "SlideQuestion",
    "Template",
    "Answer",
    "CustomizationFields",
    "CustomizationRecord",
    "CustomizationRequest",
    "CustomQuestion",
    "RequiredCheck",
]
