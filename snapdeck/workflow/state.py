"""
Workflow state and transitions.

The screen flow is modelled as an immutable WorkflowState and a pure
``transition(state, event)`` function:

    language -> input -> text ------------------> deck_type -> selection -> result
                     \\-> processing (image) --/              (processing)  (processing)

``processing`` remembers the step it was entered from so a failure can
return there. ``result -> language`` via Reset is the only cycle.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Type

from ..config import Language
from ..errors import InputError, InvalidTransition
from ..models import CardEntry, DeckType


class Step(Enum):
    """Screens of the workflow."""
    LANGUAGE = "language"
    INPUT = "input"
    TEXT = "text"
    PROCESSING = "processing"
    DECK_TYPE = "deckType"
    SELECTION = "selection"
    RESULT = "result"


@dataclass(frozen=True)
class Notice:
    """Last user-visible message (error kind + text)."""
    kind: str
    message: str


@dataclass(frozen=True)
class WorkflowState:
    """Everything the screens need, for exactly one active step."""
    step: Step = Step.LANGUAGE
    language: Optional[Language] = None
    raw_content: str = ""
    deck_type: Optional[DeckType] = None
    entries: Tuple[CardEntry, ...] = ()
    deck_name: str = ""
    progress: str = ""
    resume_step: Optional[Step] = None
    package_path: Optional[Path] = None
    notice: Optional[Notice] = None

    @property
    def is_processing(self) -> bool:
        return self.step is Step.PROCESSING


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class LanguageSelected:
    language: Language


@dataclass(frozen=True)
class TextEntryChosen:
    pass


@dataclass(frozen=True)
class TextSubmitted:
    text: str


@dataclass(frozen=True)
class ProcessingStarted:
    message: str


@dataclass(frozen=True)
class ContentExtracted:
    text: str


@dataclass(frozen=True)
class CardsGenerated:
    deck_type: DeckType
    entries: Tuple[CardEntry, ...]
    deck_name: str


@dataclass(frozen=True)
class DeckSaved:
    path: Path


@dataclass(frozen=True)
class ProcessingFailed:
    kind: str
    message: str


@dataclass(frozen=True)
class InputRejected:
    message: str


@dataclass(frozen=True)
class Reset:
    pass


# =============================================================================
# TRANSITIONS
# =============================================================================

def _require(state: WorkflowState, event: object, *steps: Step) -> None:
    if state.step not in steps:
        raise InvalidTransition(
            f"{type(event).__name__} is not allowed in step '{state.step.value}'"
        )


def _require_resume(state: WorkflowState, event: object, resume: Step) -> None:
    """Completion events are only accepted for the operation that was started."""
    _require(state, event, Step.PROCESSING)
    if state.resume_step is not resume:
        raise InvalidTransition(
            f"{type(event).__name__} does not complete an operation started "
            f"from '{state.resume_step.value if state.resume_step else None}'"
        )


def _finish(state: WorkflowState, step: Step, **changes) -> WorkflowState:
    """Leave processing for `step`, clearing the progress marker."""
    return replace(state, step=step, progress="", resume_step=None, notice=None, **changes)


def _on_language_selected(state: WorkflowState, event: LanguageSelected) -> WorkflowState:
    _require(state, event, Step.LANGUAGE)
    return replace(state, step=Step.INPUT, language=event.language, notice=None)


def _on_text_entry_chosen(state: WorkflowState, event: TextEntryChosen) -> WorkflowState:
    _require(state, event, Step.INPUT)
    return replace(state, step=Step.TEXT, notice=None)


def _on_text_submitted(state: WorkflowState, event: TextSubmitted) -> WorkflowState:
    _require(state, event, Step.TEXT)
    if not event.text.strip():
        raise InputError("Please enter some text.")
    return replace(state, step=Step.DECK_TYPE, raw_content=event.text, notice=None)


def _on_processing_started(state: WorkflowState, event: ProcessingStarted) -> WorkflowState:
    _require(state, event, Step.INPUT, Step.DECK_TYPE, Step.SELECTION)
    return replace(
        state,
        step=Step.PROCESSING,
        resume_step=state.step,
        progress=event.message,
        notice=None,
    )


def _on_content_extracted(state: WorkflowState, event: ContentExtracted) -> WorkflowState:
    _require_resume(state, event, Step.INPUT)
    return _finish(state, Step.DECK_TYPE, raw_content=event.text)


def _on_cards_generated(state: WorkflowState, event: CardsGenerated) -> WorkflowState:
    _require_resume(state, event, Step.DECK_TYPE)
    return _finish(
        state,
        Step.SELECTION,
        deck_type=event.deck_type,
        entries=tuple(event.entries),
        deck_name=event.deck_name,
    )


def _on_deck_saved(state: WorkflowState, event: DeckSaved) -> WorkflowState:
    _require_resume(state, event, Step.SELECTION)
    return _finish(state, Step.RESULT, package_path=event.path)


def _on_processing_failed(state: WorkflowState, event: ProcessingFailed) -> WorkflowState:
    _require(state, event, Step.PROCESSING)
    return replace(
        state,
        step=state.resume_step or Step.LANGUAGE,
        progress="",
        resume_step=None,
        notice=Notice(event.kind, event.message),
    )


def _on_input_rejected(state: WorkflowState, event: InputRejected) -> WorkflowState:
    _require(state, event, Step.LANGUAGE, Step.INPUT, Step.TEXT, Step.DECK_TYPE, Step.SELECTION)
    return replace(state, notice=Notice(InputError.kind, event.message))


def _on_reset(state: WorkflowState, event: Reset) -> WorkflowState:
    _require(state, event, Step.RESULT)
    return WorkflowState()


_HANDLERS: Dict[Type, Callable[[WorkflowState, object], WorkflowState]] = {
    LanguageSelected: _on_language_selected,
    TextEntryChosen: _on_text_entry_chosen,
    TextSubmitted: _on_text_submitted,
    ProcessingStarted: _on_processing_started,
    ContentExtracted: _on_content_extracted,
    CardsGenerated: _on_cards_generated,
    DeckSaved: _on_deck_saved,
    ProcessingFailed: _on_processing_failed,
    InputRejected: _on_input_rejected,
    Reset: _on_reset,
}


def transition(state: WorkflowState, event: object) -> WorkflowState:
    """
    Compute the state that follows `event`.

    Args:
        state: Current state (not modified)
        event: One of the event classes above

    Returns:
        New state

    Raises:
        InvalidTransition: The event is not accepted in the current step
        InputError: TextSubmitted carried no text
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise InvalidTransition(f"Unknown event {type(event).__name__}")
    return handler(state, event)
