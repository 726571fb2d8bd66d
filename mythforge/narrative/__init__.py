"""Storylet selection engine: trigger grammar, eligibility, weighting and the catalog."""

from .catalog import StoryletCatalog
from .eligibility import ineligibility_reason, is_eligible
from .triggers import (
    ConflictTrigger,
    DefaultTrigger,
    LocationTrigger,
    PresenceTrigger,
    TensionTrigger,
    Trigger,
    evaluate_trigger,
    parse_trigger,
)
from .weighting import adjusted_weight, select_weighted

__all__ = [
    "StoryletCatalog",
    "ineligibility_reason",
    "is_eligible",
    "Trigger",
    "PresenceTrigger",
    "LocationTrigger",
    "TensionTrigger",
    "ConflictTrigger",
    "DefaultTrigger",
    "parse_trigger",
    "evaluate_trigger",
    "adjusted_weight",
    "select_weighted",
]
