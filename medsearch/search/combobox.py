"""Pathology combobox modelled as an immutable state and a reducer.

`transition(state, event, catalog)` never mutates anything: it returns the next
`SelectorState` together with the side effects the caller has to perform
(trigger a lookup, clear the results, move focus back to the input).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Protocol, Tuple, Union

from medsearch.models import Pathology


class CandidateSource(Protocol):
    def filter(self, query: str) -> Tuple[Pathology, ...]:
        ...


class Key(str, enum.Enum):
    UP = "ArrowUp"
    DOWN = "ArrowDown"
    ENTER = "Enter"
    ESCAPE = "Escape"


class Effect(str, enum.Enum):
    QUERY_PATHOLOGY = "query_pathology"
    CLEAR_RESULTS = "clear_results"
    FOCUS_INPUT = "focus_input"


@dataclass(frozen=True)
class TextChanged:
    text: str


@dataclass(frozen=True)
class KeyPressed:
    key: Union[Key, str]


@dataclass(frozen=True)
class CandidateClicked:
    index: int


@dataclass(frozen=True)
class Focused:
    pass


@dataclass(frozen=True)
class OutsideClicked:
    pass


@dataclass(frozen=True)
class Cleared:
    pass


Event = Union[TextChanged, KeyPressed, CandidateClicked, Focused, OutsideClicked, Cleared]


@dataclass(frozen=True)
class SelectorState:
    text: str = ""
    is_open: bool = False
    highlight: int = 0
    candidates: Tuple[Pathology, ...] = ()
    selected: Optional[Pathology] = None

    @property
    def highlighted(self) -> Optional[Pathology]:
        if self.is_open and 0 <= self.highlight < len(self.candidates):
            return self.candidates[self.highlight]
        return None

    @property
    def no_matches(self) -> bool:
        """True when the dropdown should show the "No pathologies found" notice."""
        return self.is_open and bool(self.text) and not self.candidates

    def is_selected(self, pathology: Pathology) -> bool:
        return self.selected is not None and self.selected.id == pathology.id


class Transition(NamedTuple):
    state: SelectorState
    effects: Tuple[Effect, ...] = ()


def clamp(index: int, size: int) -> int:
    return max(0, min(index, size - 1))


def transition(state: SelectorState, event: Event, catalog: CandidateSource) -> Transition:
    if isinstance(event, TextChanged):
        candidates = catalog.filter(event.text)
        if not event.text:
            next_state = replace(state, text="", is_open=True, highlight=0, candidates=candidates, selected=None)
            return Transition(next_state, (Effect.CLEAR_RESULTS,))
        return Transition(replace(state, text=event.text, is_open=True, highlight=0, candidates=candidates))

    if isinstance(event, Focused):
        candidates = catalog.filter(state.text)
        return Transition(
            replace(state, is_open=True, candidates=candidates, highlight=clamp(state.highlight, len(candidates)))
        )

    if isinstance(event, KeyPressed):
        return _on_key(state, _as_key(event.key))

    if isinstance(event, CandidateClicked):
        if 0 <= event.index < len(state.candidates):
            return _commit(state, event.index)
        return Transition(state)

    if isinstance(event, OutsideClicked):
        return Transition(replace(state, is_open=False))

    if isinstance(event, Cleared):
        next_state = replace(
            state, text="", is_open=False, highlight=0, candidates=catalog.filter(""), selected=None
        )
        return Transition(next_state, (Effect.CLEAR_RESULTS, Effect.FOCUS_INPUT))

    raise TypeError(f"Unknown combobox event: {event!r}")


def _as_key(value: Union[Key, str]) -> Optional[Key]:
    try:
        return Key(value)
    except ValueError:
        return None


def _on_key(state: SelectorState, key: Optional[Key]) -> Transition:
    if not state.is_open:
        if key in (Key.UP, Key.DOWN):
            return Transition(replace(state, is_open=True, highlight=0))
        return Transition(state)

    size = len(state.candidates)
    if key is Key.DOWN:
        return Transition(replace(state, highlight=clamp(state.highlight + 1, size)))
    if key is Key.UP:
        return Transition(replace(state, highlight=clamp(state.highlight - 1, size)))
    if key is Key.ENTER:
        if size:
            return _commit(state, clamp(state.highlight, size))
        return Transition(state)
    if key is Key.ESCAPE:
        return Transition(replace(state, is_open=False))
    return Transition(state)


def _commit(state: SelectorState, index: int) -> Transition:
    chosen = state.candidates[index]
    next_state = replace(state, text=chosen.name, is_open=False, highlight=index, selected=chosen)
    return Transition(next_state, (Effect.QUERY_PATHOLOGY,))
