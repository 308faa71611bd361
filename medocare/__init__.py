"""
Medo Care - Medical Imaging Intake and Report Explanation

Accepts clinician-supplied medical images (PNG, JPEG, DICOM) and rewrites
radiology findings into patient-readable language.

IMPORTANT: The report translation is a deterministic text substitution.
It is NOT a diagnostic tool and must never replace a radiologist.
"""

__version__ = "1.0.0"
__author__ = "Medo Care Team"
