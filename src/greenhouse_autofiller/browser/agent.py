"""Browser session that delivers autofill commands to an application page."""

from typing import List, Optional

from playwright.async_api import async_playwright

from greenhouse_autofiller.browser.forms import FillReport, FormFiller
from greenhouse_autofiller.config import settings
from greenhouse_autofiller.core.models import AutofillCommand, CandidateProfile
from greenhouse_autofiller.utils.logging import get_logger

logger = get_logger(__name__)


SUCCESS_STATUS = "Form autofilled successfully!"
FAILURE_STATUS = (
    "Error: Could not autofill form. Make sure you are on a Greenhouse application page."
)


class BrowserAgent:
    """
    Playwright-backed browser session for job application pages.

    The agent owns the browser, opens the application page and hands the
    AUTOFILL command to a FormFiller bound to that page, reporting the
    outcome as a user-facing status string.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        user_data_dir: Optional[str] = None,
        viewport_size: tuple = (1920, 1080),
        timeout: Optional[int] = None,
        form_filler: Optional[FormFiller] = None
    ):
        """
        Initialize the browser agent.

        Args:
            headless: Run browser in headless mode
            user_data_dir: Custom user data directory for persistent sessions
            viewport_size: Browser viewport size (width, height)
            timeout: Default operation timeout in seconds
            form_filler: Form filler to bind to the opened page
        """
        self.headless = settings.browser_headless if headless is None else headless
        self.user_data_dir = user_data_dir or settings.browser_user_data_dir
        self.viewport_size = viewport_size
        self.timeout = timeout or settings.browser_timeout
        self.form_filler = form_filler or FormFiller()
        self.logger = logger.bind(component="browser_agent")

        # Playwright instances
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

        # Session state
        self.is_initialized = False
        self.current_url = None

    async def initialize(self) -> bool:
        """
        Launch Chromium and open a page.

        Returns:
            True if initialization successful, False otherwise
        """
        if self.is_initialized:
            return True

        try:
            self.playwright = await async_playwright().start()
            viewport = {"width": self.viewport_size[0], "height": self.viewport_size[1]}

            if self.user_data_dir:
                self.context = await self.playwright.chromium.launch_persistent_context(
                    self.user_data_dir,
                    headless=self.headless,
                    viewport=viewport
                )
            else:
                self.browser = await self.playwright.chromium.launch(headless=self.headless)
                self.context = await self.browser.new_context(viewport=viewport)

            self.context.set_default_timeout(self.timeout * 1000)
            self.page = await self.context.new_page()
            self.form_filler.page = self.page

            self.is_initialized = True
            self.logger.info(
                "Browser agent initialized successfully",
                headless=self.headless,
                viewport_size=self.viewport_size
            )
            return True

        except Exception as e:
            self.logger.error(
                "Failed to initialize browser agent",
                error=str(e),
                error_type=type(e).__name__
            )
            await self.close()
            return False

    async def navigate_to(self, url: str) -> bool:
        """
        Navigate to a specific URL.

        Args:
            url: Target URL

        Returns:
            True if navigation successful, False otherwise
        """
        if not self.is_initialized and not await self.initialize():
            return False

        try:
            await self.page.goto(url, wait_until="networkidle")
            self.current_url = url

            self.logger.info(
                "Navigated to URL",
                url=url,
                title=await self.page.title()
            )
            return True

        except Exception as e:
            self.logger.error(
                "Navigation failed",
                url=url,
                error=str(e)
            )
            return False

    async def send_autofill(self, profile: CandidateProfile) -> str:
        """
        Deliver an AUTOFILL command to the current page.

        Args:
            profile: Candidate profile snapshot

        Returns:
            User-facing status string
        """
        if not self.page or self.page.is_closed():
            self.logger.warning("No application page open")
            return FAILURE_STATUS

        message = AutofillCommand(candidate=profile).model_dump(by_alias=True)

        try:
            response = self.form_filler.handle_message(message)
        except Exception as e:
            self.logger.error(
                "Autofill command could not be delivered",
                error=str(e),
                error_type=type(e).__name__
            )
            return FAILURE_STATUS

        if not response or not response.get("success"):
            return FAILURE_STATUS

        return SUCCESS_STATUS

    async def wait_for_fill(self) -> List[FillReport]:
        """Wait until fills started by send_autofill have settled."""
        return await self.form_filler.wait_idle()

    async def close(self) -> None:
        """Close the browser and cleanup resources."""
        try:
            if self.page and not self.page.is_closed():
                await self.page.close()

            if self.context:
                await self.context.close()

            if self.browser:
                await self.browser.close()

            if self.playwright:
                await self.playwright.stop()

            self.logger.info("Browser agent closed successfully")

        except Exception as e:
            self.logger.error(
                "Error closing browser agent",
                error=str(e)
            )

        finally:
            self.page = None
            self.context = None
            self.browser = None
            self.playwright = None
            self.is_initialized = False
            self.current_url = None


def create_browser_agent(
    headless: Optional[bool] = None,
    user_data_dir: Optional[str] = None,
    viewport_size: tuple = (1920, 1080),
    timeout: Optional[int] = None
) -> BrowserAgent:
    """
    Factory function to create a browser agent.

    Args:
        headless: Run browser in headless mode
        user_data_dir: Custom user data directory for persistent sessions
        viewport_size: Browser viewport size (width, height)
        timeout: Default operation timeout in seconds

    Returns:
        Configured BrowserAgent instance
    """
    return BrowserAgent(
        headless=headless,
        user_data_dir=user_data_dir,
        viewport_size=viewport_size,
        timeout=timeout
    )
