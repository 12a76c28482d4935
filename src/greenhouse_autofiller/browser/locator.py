"""Multi-strategy form control discovery."""

from typing import List, Optional, Sequence

from playwright.async_api import ElementHandle, Page

from greenhouse_autofiller.core.fields import FieldSpec
from greenhouse_autofiller.utils.logging import get_logger

logger = get_logger(__name__)


def _css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class LocatorStrategy:
    """One technique for finding the controls behind a semantic field."""

    name = "strategy"

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        raise NotImplementedError


class CuratedSelectorStrategy(LocatorStrategy):
    """Exact, known-good selectors; the first selector with a match wins."""

    name = "curated"

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        for selector in spec.curated_selectors:
            element = await page.query_selector(selector)
            if element:
                return [element]
        return []


class NameSubstringStrategy(LocatorStrategy):
    """Case-insensitive substring match on the control's name attribute."""

    name = "name_substring"

    def selector_for(self, spec: FieldSpec) -> str:
        return f'{spec.tag}[name*="{_css_string(spec.name_keyword)}" i]'

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        return await page.query_selector_all(self.selector_for(spec))


class DataAttributeStrategy(LocatorStrategy):
    """Case-insensitive substring match on data-field, regardless of tag."""

    name = "data_attribute"

    def selector_for(self, spec: FieldSpec) -> str:
        return f'[data-field*="{_css_string(spec.name_keyword)}" i]'

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        return await page.query_selector_all(self.selector_for(spec))


class LabelTextStrategy(LocatorStrategy):
    """Match <label> text, then follow its for= reference or nested control."""

    name = "label_text"

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        keyword = spec.label_text.lower()
        controls: List[ElementHandle] = []

        for label in await page.query_selector_all("label"):
            text = (await label.text_content() or "").lower()
            if keyword not in text:
                continue

            target_id = await label.get_attribute("for")
            if target_id:
                control = await page.query_selector(f'[id="{_css_string(target_id)}"]')
            else:
                control = await label.query_selector("input, textarea")

            if control:
                controls.append(control)

        return controls


DEFAULT_STRATEGIES: Sequence[LocatorStrategy] = (
    CuratedSelectorStrategy(),
    NameSubstringStrategy(),
    DataAttributeStrategy(),
    LabelTextStrategy(),
)


class Locator:
    """
    Ordered strategy chain for a semantic field.

    The first strategy returning a non-empty list decides the result; later
    strategies are not consulted even if they would match more elements.
    """

    def __init__(self, strategies: Optional[Sequence[LocatorStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)
        self.logger = logger.bind(component="locator")

    async def locate(self, page: Page, spec: FieldSpec) -> List[ElementHandle]:
        """
        Find the controls for a field.

        Args:
            page: Live page to search
            spec: Field description

        Returns:
            Elements matched by the first successful strategy, or an empty list
        """
        for strategy in self.strategies:
            try:
                elements = await strategy.locate(page, spec)
            except Exception as e:
                self.logger.warning(
                    "Locator strategy failed",
                    field=spec.field.value,
                    strategy=strategy.name,
                    error=str(e)
                )
                continue

            if elements:
                self.logger.debug(
                    "Field located",
                    field=spec.field.value,
                    strategy=strategy.name,
                    matches=len(elements)
                )
                return elements

        self.logger.debug("No match for field", field=spec.field.value)
        return []


def create_locator(curated_only: bool = False) -> Locator:
    """Factory for the full chain or the curated-only chain."""
    if curated_only:
        return Locator([CuratedSelectorStrategy()])
    return Locator()
