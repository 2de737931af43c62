from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import EVENT_HISTORY_LIMIT
from ..schemas import (
    EVENT_ADAPTER,
    Event,
    ResetEvent,
    ScoreSetEvent,
    SquadScoreEvent,
)

logger = logging.getLogger(__name__)


class ScoreHistory:
    """Score events of one set since the last reset, in log order.

    The view re-reads the log on every iteration, so it can be iterated any
    number of times and always reflects the current log.
    """

    def __init__(self, log: "EventLog", set_number: int) -> None:
        self._log = log
        self.set_number = set_number

    def __iter__(self) -> Iterator[ScoreSetEvent]:
        for event in self._log.since_last_reset():
            if isinstance(event, ScoreSetEvent) and event.set == self.set_number:
                yield event

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __getitem__(self, index: int) -> ScoreSetEvent:
        return list(self)[index]


class EventLog:
    """Append-mostly chronological log of score, set and reset events."""

    def __init__(
        self, events: Iterable[Event] | None = None, limit: int = EVENT_HISTORY_LIMIT
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self._limit = limit
        self._events: List[Event] = list(events or [])
        self._truncate()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    def _truncate(self) -> None:
        if len(self._events) > self._limit:
            del self._events[: len(self._events) - self._limit]

    def append(self, event: Event) -> Event:
        self._events.append(event)
        self._truncate()
        return event

    def last_reset_index(self) -> int:
        """Index of the most recent reset, or ``-1`` if there is none."""
        for index in range(len(self._events) - 1, -1, -1):
            if isinstance(self._events[index], ResetEvent):
                return index
        return -1

    def since_last_reset(self) -> list[Event]:
        return self._events[self.last_reset_index() + 1 :]

    def score_history(self, set_number: int) -> ScoreHistory:
        return ScoreHistory(self, set_number)

    def latest_score(self, team: str, set_number: Optional[int] = None, *, squad: bool = False) -> int:
        """Score of the newest matching event since the last reset; 0 if none."""
        for event in reversed(self.since_last_reset()):
            if squad:
                if isinstance(event, SquadScoreEvent) and event.team == team:
                    return event.score
            elif (
                isinstance(event, ScoreSetEvent)
                and event.team == team
                and event.set == set_number
            ):
                return event.score
        return 0

    def remove_latest_above(self, team: str, set_number: int, score: int) -> Optional[ScoreSetEvent]:
        """Drop the newest score event for team+set whose score exceeds ``score``.

        Events before the last reset are never touched.
        """
        start = self.last_reset_index() + 1
        for index in range(len(self._events) - 1, start - 1, -1):
            event = self._events[index]
            if (
                isinstance(event, ScoreSetEvent)
                and event.team == team
                and event.set == set_number
                and event.score > score
            ):
                del self._events[index]
                return event
        return None

    def on_score_edit(
        self,
        team: str,
        set_number: Optional[int],
        new_score: int,
        *,
        squad: bool = False,
    ) -> Optional[Event]:
        """Keep the log in step with a direct score edit.

        Increases (and unchanged values) append a new event. A decrease removes
        a single matching event however large the decrease is; if nothing
        matches the log is left untouched. Squad scores are always appended.
        Returns the appended or removed event.
        """
        if squad:
            return self.append(SquadScoreEvent(team=team, score=new_score))

        old_score = self.latest_score(team, set_number)
        if new_score < old_score:
            return self.remove_latest_above(team, set_number, new_score)
        return self.append(ScoreSetEvent(team=team, set=set_number, score=new_score))

    def to_wire(self) -> list[dict[str, Any]]:
        return [event.model_dump() for event in self._events]

    @classmethod
    def from_wire(cls, raw: Any, limit: int = EVENT_HISTORY_LIMIT) -> "EventLog":
        """Load a stored log.

        A missing or malformed log loads as empty. Entries that do not parse as
        events are skipped.
        """
        if raw is None:
            return cls(limit=limit)
        if isinstance(raw, dict) and all(str(k).isdigit() for k in raw):
            # Stores that persist arrays as index-keyed objects.
            raw = [raw[k] for k in sorted(raw, key=lambda k: int(k))]
        if not isinstance(raw, list):
            logger.warning(
                "event_history is not a list (got %s); starting from an empty log",
                type(raw).__name__,
            )
            return cls(limit=limit)

        events: list[Event] = []
        for position, item in enumerate(raw):
            try:
                events.append(EVENT_ADAPTER.validate_python(item))
            except PydanticValidationError:
                logger.warning("Skipping malformed event #%d: %r", position, item)
        return cls(events, limit=limit)
