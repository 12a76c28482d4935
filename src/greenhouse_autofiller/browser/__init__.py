"""Browser automation components for form discovery and value injection."""

from greenhouse_autofiller.browser.agent import BrowserAgent, create_browser_agent
from greenhouse_autofiller.browser.forms import FillReport, FormFiller, create_form_filler
from greenhouse_autofiller.browser.injector import InputInjector, create_input_injector
from greenhouse_autofiller.browser.locator import Locator, create_locator
from greenhouse_autofiller.browser.resume import ResumeDecodeError, ResumeInjector, create_resume_injector

__all__ = [
    "BrowserAgent", "create_browser_agent",
    "FormFiller", "FillReport", "create_form_filler",
    "InputInjector", "create_input_injector",
    "Locator", "create_locator",
    "ResumeInjector", "ResumeDecodeError", "create_resume_injector"
]
