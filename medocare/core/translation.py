"""
Clinical-to-patient text translation for Medo Care.

Rewrites radiology jargon into plain language with an ordered list of
case-insensitive substitution rules. Each rule runs on the output of
the rule before it, so a specific phrase must be listed before any
shorter rule whose pattern it contains.

This is a fixed text substitution, not a medical language model.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from medocare.utils.logger import get_logger

logger = get_logger("translation")


@dataclass(frozen=True)
class TranslationRule:
    """A single pattern -> plain-language replacement."""

    pattern: str
    replacement: str

    @property
    def compiled(self) -> "re.Pattern[str]":
        return re.compile(self.pattern, re.IGNORECASE)


# Order matters: specific phrases first. No pattern may match any
# replacement, otherwise translating twice would change the text.
DEFAULT_TRANSLATION_RULES: Tuple[TranslationRule, ...] = (
    TranslationRule(
        r"right lower lobe consolidation with air bronchograms",
        "There is likely pneumonia in the lower part of your right lung.",
    ),
    TranslationRule(
        r"consolidation",
        "a dense area in the lung, often due to infection (like pneumonia)",
    ),
    TranslationRule(
        r"pleural effusion",
        "fluid around the lung",
    ),
    TranslationRule(
        r"effusion",
        "a buildup of fluid",
    ),
    TranslationRule(
        r"cardiomegaly",
        "an enlarged heart",
    ),
    TranslationRule(
        r"atelectasis",
        "a small area where the lung is not fully inflated",
    ),
    TranslationRule(
        r"pneumothorax",
        "air trapped between the lung and the chest wall",
    ),
)


class ReportTranslator:
    """
    Applies translation rules in declaration order.

    The rule list is fixed at construction and only read afterwards,
    so one translator can serve concurrent requests.
    """

    def __init__(self, rules: Optional[Iterable[TranslationRule]] = None):
        self.rules: Tuple[TranslationRule, ...] = tuple(
            DEFAULT_TRANSLATION_RULES if rules is None else rules
        )
        self._compiled = tuple(
            (rule.compiled, rule.replacement) for rule in self.rules
        )

    def translate(self, text: str) -> str:
        """
        Rewrite clinical text into patient-friendly language.

        Args:
            text: Clinical findings

        Returns:
            Text with every rule applied in order
        """
        translated = text or ""
        fired = 0

        for pattern, replacement in self._compiled:
            # Function replacement so the text is inserted literally
            translated, count = pattern.subn(lambda _m, r=replacement: r, translated)
            if count:
                fired += 1

        logger.debug("Findings translated", rules_fired=fired, length=len(translated))
        return translated


translator = ReportTranslator()
