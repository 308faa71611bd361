"""
Structured report composition for Medo Care.

Builds a clinical report with a patient explanation from free-text
findings. Missing findings are filled in with defaults, never errors.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from medocare.config import (
    DEFAULT_EXPLANATION,
    DEFAULT_FINDINGS,
    DEFAULT_IMPRESSION,
    DEFAULT_RECOMMENDATIONS,
    Settings,
)
from medocare.core.translation import ReportTranslator, translator as default_translator
from medocare.utils.logger import get_logger

logger = get_logger("report_composer")


@dataclass
class ClinicalReport:
    """Report returned to the caller. Built fresh per request."""

    findings_raw: str
    findings: str
    findings_translated: str
    impression: str
    recommendations: List[str] = field(default_factory=list)
    patient_explanation: str = ""


class ReportComposer:
    """
    Assembles a ClinicalReport around the translator's output.

    Impression and recommendations are static in this version but are
    injected at construction so they can be supplied per deployment.
    """

    def __init__(
        self,
        translator: Optional[ReportTranslator] = None,
        default_findings: str = DEFAULT_FINDINGS,
        default_explanation: str = DEFAULT_EXPLANATION,
        impression: str = DEFAULT_IMPRESSION,
        recommendations: Sequence[str] = DEFAULT_RECOMMENDATIONS,
    ):
        self.translator = translator or default_translator
        self.default_findings = default_findings
        self.default_explanation = default_explanation
        self.impression = impression
        self.recommendations = tuple(recommendations)

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        translator: Optional[ReportTranslator] = None
    ) -> "ReportComposer":
        return cls(
            translator=translator,
            default_findings=config.report_default_findings,
            default_explanation=config.report_default_explanation,
            impression=config.report_impression,
            recommendations=config.report_recommendations,
        )

    def compose(self, findings_raw: Optional[str]) -> ClinicalReport:
        """
        Build a report from clinician findings.

        Args:
            findings_raw: Free-text findings; None or empty means no
                findings were supplied

        Returns:
            ClinicalReport with defaults applied where input is absent
        """
        raw = findings_raw or ""
        has_findings = raw != ""

        findings = raw if has_findings else self.default_findings
        translated = self.translator.translate(findings)

        # Blank text is kept as the findings but explains nothing
        if has_findings and translated.strip():
            explanation = translated
        else:
            explanation = self.default_explanation

        logger.info(
            "Report composed",
            has_findings=has_findings,
            translated=translated != findings
        )

        return ClinicalReport(
            findings_raw=raw,
            findings=findings,
            findings_translated=translated,
            impression=self.impression,
            recommendations=list(self.recommendations),
            patient_explanation=explanation,
        )
