"""Value injection that is observed by both the DOM and client-side frameworks."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from playwright.async_api import ElementHandle

from greenhouse_autofiller.config import settings
from greenhouse_autofiller.utils.logging import get_logger

logger = get_logger(__name__)


WRITE_VALUE_JS = """
(el, value) => {
    el.value = value;
    el.setAttribute('value', value);
}
"""

# Frameworks may shadow `value` on the instance to swallow external writes;
# the prototype setter goes underneath that.
NATIVE_SETTER_JS = """
(el, value) => {
    const proto = el instanceof HTMLTextAreaElement
        ? HTMLTextAreaElement.prototype
        : HTMLInputElement.prototype;
    const descriptor = Object.getOwnPropertyDescriptor(proto, 'value');
    if (descriptor && descriptor.set) {
        descriptor.set.call(el, value);
    }
    el.dispatchEvent(new Event('input', { bubbles: true }));
}
"""

FRAMEWORK_HANDLER_JS = """
(el, { value, prefixes }) => {
    const key = Object.keys(el).find((k) => prefixes.some((p) => k.startsWith(p)));
    if (!key) {
        return false;
    }
    const props = el[key];
    if (!props || typeof props.onChange !== 'function') {
        return false;
    }
    props.onChange({
        target: { value },
        currentTarget: { value },
        preventDefault: () => {},
    });
    return true;
}
"""

HAS_FRAMEWORK_MARKER_JS = """
(el, prefixes) => Object.keys(el).some((k) => prefixes.some((p) => k.startsWith(p)))
"""

# ElementHandle.dispatch_event builds a plain Event for input types, which
# drops `data`; the constructor is picked in the page instead.
DISPATCH_EVENT_JS = """
(el, { type, constructor, init }) => {
    const EventType = window[constructor] || Event;
    el.dispatchEvent(new EventType(type, init));
}
"""

EVENT_CONSTRUCTORS = {
    "focus": "FocusEvent",
    "focusin": "FocusEvent",
    "blur": "FocusEvent",
    "focusout": "FocusEvent",
    "beforeinput": "InputEvent",
    "input": "InputEvent",
}


def replay_events(value: str) -> List[Tuple[str, Dict[str, Any]]]:
    """Event sequence a user typing into a control would produce."""
    typed = {"bubbles": True, "data": value, "inputType": "insertText"}
    return [
        ("focus", {"bubbles": True}),
        ("focusin", {"bubbles": True}),
        ("beforeinput", dict(typed)),
        ("input", dict(typed)),
        ("change", {"bubbles": True}),
        ("blur", {"bubbles": True}),
        ("focusout", {"bubbles": True}),
    ]


def event_constructor(event_type: str) -> str:
    """DOM event interface used to build a replayed event."""
    return EVENT_CONSTRUCTORS.get(event_type, "Event")


class InputInjector:
    """
    Writes values into form controls so that framework-managed forms keep them.

    A plain value write is often lost when a framework re-renders from its own
    state, so each injection combines a native write, a staggered replay of
    user events, a prototype-setter write and, when present, a direct call to
    the framework's registered change handler.
    """

    def __init__(
        self,
        event_stagger_ms: Optional[int] = None,
        framework_prefixes: Optional[Sequence[str]] = None
    ):
        """
        Initialize the injector.

        Args:
            event_stagger_ms: Delay between replayed events
            framework_prefixes: Property name prefixes of framework handler registries
        """
        if event_stagger_ms is None:
            event_stagger_ms = settings.event_stagger_ms
        self.event_stagger = event_stagger_ms / 1000
        self.framework_prefixes = list(
            framework_prefixes if framework_prefixes is not None else settings.framework_prop_prefixes
        )
        self.logger = logger.bind(component="input_injector")

        self._pending: Set[asyncio.Task] = set()

    async def inject(self, element: ElementHandle, value: str, field: Optional[str] = None) -> bool:
        """
        Inject a value into a control.

        Args:
            element: Target control
            value: Value to write
            field: Semantic field name, for logging

        Returns:
            True if the synchronous part of the injection succeeded
        """
        self.logger.debug("Attempting to fill field", field=field, value_length=len(value))

        try:
            await element.focus()
            await element.evaluate(WRITE_VALUE_JS, value)
        except Exception as e:
            self.logger.error(
                "Error filling field",
                field=field,
                error=str(e),
                error_type=type(e).__name__
            )
            return False

        self._schedule_replay(element, value, field)

        # Only input and textarea prototypes carry a value setter
        try:
            await element.evaluate(NATIVE_SETTER_JS, value)
        except Exception as e:
            self.logger.debug("Prototype setter write failed", field=field, error=str(e))

        try:
            handled = await element.evaluate(
                FRAMEWORK_HANDLER_JS,
                {"value": value, "prefixes": self.framework_prefixes}
            )
            if handled:
                self.logger.debug("Framework change handler invoked", field=field)
        except Exception as e:
            self.logger.warning("Framework change handler failed", field=field, error=str(e))

        return True

    async def has_framework_marker(self, element: ElementHandle) -> bool:
        """Check whether a framework instance is attached to the element."""
        try:
            return bool(await element.evaluate(HAS_FRAMEWORK_MARKER_JS, self.framework_prefixes))
        except Exception as e:
            self.logger.debug("Framework marker check failed", error=str(e))
            return False

    def _schedule_replay(self, element: ElementHandle, value: str, field: Optional[str]) -> None:
        task = asyncio.create_task(self._replay(element, value, field))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _replay(self, element: ElementHandle, value: str, field: Optional[str]) -> None:
        for index, (event_type, event_init) in enumerate(replay_events(value)):
            await asyncio.sleep(self.event_stagger if index else 0)
            try:
                await element.evaluate(
                    DISPATCH_EVENT_JS,
                    {"type": event_type, "constructor": event_constructor(event_type), "init": event_init}
                )
            except Exception as e:
                # Element detached or page navigated away
                self.logger.debug(
                    "Replayed event not delivered",
                    field=field,
                    event_type=event_type,
                    error=str(e)
                )

    @property
    def pending(self) -> int:
        """Number of event replays still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all scheduled event replays to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def create_input_injector(
    event_stagger_ms: Optional[int] = None,
    framework_prefixes: Optional[Sequence[str]] = None
) -> InputInjector:
    """Factory function to create an input injector."""
    return InputInjector(event_stagger_ms=event_stagger_ms, framework_prefixes=framework_prefixes)
