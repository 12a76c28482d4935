"""
Greenhouse Autofiller: fills unknown job application forms from a candidate profile.

This package locates form controls with several independent strategies,
injects values so that client-side frameworks observe them, and attaches a
resume file through the browser's native file list mechanism.
"""

__version__ = "0.1.0"

from greenhouse_autofiller.core.models import CandidateProfile
from greenhouse_autofiller.browser.forms import FormFiller, FillReport
from greenhouse_autofiller.browser.agent import BrowserAgent

__all__ = [
    "CandidateProfile",
    "FormFiller",
    "FillReport",
    "BrowserAgent",
]
