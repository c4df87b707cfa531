from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from incident_ops.converters import DEFAULT_CONVERTER, MarkdownHtmlConverter

logger = logging.getLogger(__name__)

# A scheduler returning False could not queue the callback.
Scheduler = Callable[[Callable[[], None]], object]


class EditingSurface(Protocol):
    def get_current_content(self) -> str: ...

    def load_content(self, content: str, *, silent: bool) -> None: ...


class SyncPhase(str, Enum):
    IDLE = "idle"
    SUPPRESSED = "suppressed"


@dataclass
class SyncState:
    last_known_external_value: str = ""
    suppress_echo: bool = False


def next_turn(callback: Callable[[], None]) -> bool:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return False
    loop.call_soon(callback)
    return True


class EditorSyncController:
    # The markdown value is canonical. External values load inside a
    # suppression window that closes on the next scheduling turn; without an
    # event loop it stays open until end_turn().

    def __init__(
        self,
        surface: EditingSurface,
        on_change: Callable[[str], None],
        *,
        initial_value: str = "",
        converter: MarkdownHtmlConverter = DEFAULT_CONVERTER,
        schedule: Scheduler = next_turn,
    ) -> None:
        self._surface = surface
        self._on_change = on_change
        self._converter = converter
        self._schedule = schedule
        self._generation = 0
        self._deferred_release: Callable[[], None] | None = None
        self._state: SyncState | None = SyncState(last_known_external_value=initial_value)
        surface.load_content(converter.to_native(initial_value), silent=True)

    @property
    def state(self) -> SyncState | None:
        return self._state

    @property
    def phase(self) -> SyncPhase:
        if self._state is not None and self._state.suppress_echo:
            return SyncPhase.SUPPRESSED
        return SyncPhase.IDLE

    @property
    def mounted(self) -> bool:
        return self._state is not None

    def on_local_change(self, content: str | None = None) -> str | None:
        state = self._state
        if state is None:
            return None
        if state.suppress_echo:
            logger.debug("Dropped surface update inside suppression window")
            return None
        if content is None:
            content = self._surface.get_current_content()
        markdown = self._converter.to_markdown(content)
        state.last_known_external_value = markdown
        self._on_change(markdown)
        return markdown

    def on_external_value_change(self, value: str) -> bool:
        state = self._state
        if state is None:
            return False
        value = value or ""
        if value == state.last_known_external_value:
            return False
        self._generation += 1
        generation = self._generation
        state.suppress_echo = True
        state.last_known_external_value = value
        self._surface.load_content(self._converter.to_native(value), silent=True)

        def release() -> None:
            self._release(generation)

        if self._schedule(release) is False:
            self._deferred_release = release
        return True

    def end_turn(self) -> None:
        release, self._deferred_release = self._deferred_release, None
        if release is not None:
            release()

    def unmount(self) -> None:
        self._state = None
        self._deferred_release = None

    def _release(self, generation: int) -> None:
        # Only the window opened by the latest external change may close it.
        if self._state is None or generation != self._generation:
            return
        self._state.suppress_echo = False
