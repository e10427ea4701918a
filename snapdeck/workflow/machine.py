"""Workflow controller - runs the async steps and owns the state."""

import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

from ..config import Language, get_language
from ..deck import DeckServiceClient, SelectionEditor
from ..errors import (
    ConfigurationError,
    DeckServiceError,
    ExtractionError,
    InputError,
    InvalidTransition,
    SnapDeckError,
)
from ..models import DeckType
from ..services import AIService
from ..utils.images import encode_image
from .state import (
    CardsGenerated,
    ContentExtracted,
    DeckSaved,
    InputRejected,
    LanguageSelected,
    ProcessingFailed,
    ProcessingStarted,
    Reset,
    Step,
    TextEntryChosen,
    TextSubmitted,
    WorkflowState,
    transition,
)

logger = logging.getLogger(__name__)

Listener = Callable[[WorkflowState], None]
ImageSource = Union[str, Path, bytes]
# Camera / gallery picker: returns an image, or None when the user cancels
ImagePicker = Callable[[], Awaitable[Optional[ImageSource]]]

PICKER_FAILURE_MESSAGES = {
    "camera": "Could not take photo",
    "gallery": "Could not upload image",
}


class Workflow:
    """
    One user session, from language choice to the saved deck.

    All state changes go through ``dispatch`` so listeners (the presentation
    layer) see every state exactly once. Async operations enter the
    processing step and always leave it, either with their completion event
    or with ProcessingFailed.

    Usage:
        async with Workflow() as flow:
            flow.select_language("de")
            flow.choose_text_entry()
            flow.submit_text(text)
            await flow.choose_deck_type(DeckType.VOCABULARY)
            flow.editor.toggle(0)
            await flow.submit_selection()
    """

    def __init__(
        self,
        ai_service: Optional[AIService] = None,
        deck_client: Optional[DeckServiceClient] = None,
    ):
        self.ai = ai_service or AIService()
        self.deck_client = deck_client or DeckServiceClient()
        self._state = WorkflowState()
        self._listeners: List[Listener] = []
        self.editor: Optional[SelectionEditor] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback for state changes.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify_change(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def dispatch(self, event: object) -> WorkflowState:
        """Apply one event and notify listeners."""
        new_state = transition(self._state, event)
        logger.debug("%s: %s -> %s", type(event).__name__,
                     self._state.step.value, new_state.step.value)

        if isinstance(event, CardsGenerated):
            self.editor = SelectionEditor(new_state.entries)
        elif isinstance(event, Reset):
            self.editor = None

        self._state = new_state
        self._notify_change()
        return new_state

    def _expect(self, *steps: Step) -> None:
        if self._state.step not in steps:
            raise InvalidTransition(
                f"Operation not available in step '{self._state.step.value}'"
            )

    async def _run(
        self,
        progress: str,
        operation: Callable[[], Awaitable[object]],
        failure_message: str,
    ) -> WorkflowState:
        """
        Run one async operation inside the processing step.

        Args:
            progress: Message shown while the operation runs
            operation: Coroutine function returning the completion event
            failure_message: User message for extraction failures

        Returns:
            State after completion or after returning to the previous step
        """
        self.dispatch(ProcessingStarted(progress))
        try:
            event = await operation()
        except (DeckServiceError, ConfigurationError) as e:
            logger.warning("%s failed: %s", progress, e.message)
            return self.dispatch(ProcessingFailed(e.kind, e.message))
        except SnapDeckError as e:
            logger.warning("%s failed: %s", progress, e.message)
            return self.dispatch(ProcessingFailed(e.kind, failure_message))
        except Exception:
            logger.exception("%s failed unexpectedly", progress)
            return self.dispatch(ProcessingFailed("unexpected", failure_message))
        return self.dispatch(event)

    # =========================================================================
    # LANGUAGE / INPUT / TEXT
    # =========================================================================

    def select_language(self, language: Union[Language, str]) -> WorkflowState:
        """Store the target language and move on to the input choice."""
        if isinstance(language, str):
            found = get_language(language)
            if found is None:
                return self.dispatch(InputRejected(f"Unknown language '{language}'"))
            language = found
        return self.dispatch(LanguageSelected(language))

    def choose_text_entry(self) -> WorkflowState:
        return self.dispatch(TextEntryChosen())

    def submit_text(self, text: str) -> WorkflowState:
        """Submit typed or pasted text; empty text keeps the user on the text step."""
        self._expect(Step.TEXT)
        if not text or not text.strip():
            return self.dispatch(InputRejected("Please enter some text."))
        return self.dispatch(TextSubmitted(text))

    # =========================================================================
    # IMAGE PATH
    # =========================================================================

    async def capture_image(self, picker: ImagePicker, source: str = "gallery") -> WorkflowState:
        """
        Get an image from a camera or gallery picker and process it.

        Args:
            picker: Platform picker; returns a path or bytes, None on cancel
            source: "camera" or "gallery", used for the failure message

        Returns:
            New state (unchanged when the user cancelled)
        """
        self._expect(Step.INPUT)
        try:
            image = await picker()
        except Exception:
            logger.exception("Image picker (%s) failed", source)
            return self.dispatch(InputRejected(
                PICKER_FAILURE_MESSAGES.get(source, PICKER_FAILURE_MESSAGES["gallery"])
            ))

        if image is None:
            logger.debug("Image capture cancelled")
            return self._state
        return await self.process_image(image)

    async def process_image(self, image: ImageSource) -> WorkflowState:
        """Read the text in an image and continue to the deck type choice."""
        self._expect(Step.INPUT)

        async def extract() -> ContentExtracted:
            try:
                encoded = await encode_image(image)
            except (OSError, ValueError) as e:
                raise ExtractionError(f"Could not read image: {e}") from e
            return ContentExtracted(await self.ai.extract_text_from_image(encoded))

        return await self._run("Processing image...", extract, "Image processing failed")

    # =========================================================================
    # CARD GENERATION
    # =========================================================================

    async def choose_deck_type(self, deck_type: Union[DeckType, str]) -> WorkflowState:
        """
        Generate cards of the chosen type from the collected content.

        The deck name is suggested first, from the beginning of the content,
        then the content is turned into vocabulary or Q&A entries.
        """
        self._expect(Step.DECK_TYPE)
        try:
            deck_type = DeckType(deck_type)
        except ValueError:
            return self.dispatch(InputRejected(f"Unknown deck type '{deck_type}'"))
        content = self._state.raw_content
        language = self._state.language

        async def generate() -> CardsGenerated:
            deck_name = await self.ai.suggest_deck_name(content, language)
            if deck_type is DeckType.VOCABULARY:
                entries = await self.ai.extract_vocabulary(content, language)
            else:
                entries = await self.ai.generate_qa_pairs(content, language)
            if not entries:
                raise ExtractionError("The model answer contained no usable cards")
            logger.info("Generated %d %s cards for deck '%s'",
                        len(entries), deck_type.value, deck_name)
            return CardsGenerated(deck_type, tuple(entries), deck_name)

        return await self._run(
            "Generating cards...", generate, "Failed to generate cards. Please try again."
        )

    # =========================================================================
    # SUBMISSION / RESET
    # =========================================================================

    async def submit_selection(self) -> WorkflowState:
        """Send the selected cards to the deck service and save the package."""
        self._expect(Step.SELECTION)
        try:
            snapshot = self.editor.validate()
        except InputError as e:
            return self.dispatch(InputRejected(e.message))

        deck_name = self._state.deck_name

        async def submit() -> DeckSaved:
            return DeckSaved(await self.deck_client.submit_deck(snapshot, deck_name))

        return await self._run("Generating Anki deck...", submit, "Failed to generate deck")

    def reset(self) -> WorkflowState:
        """Start over with a new deck."""
        return self.dispatch(Reset())

    async def close(self) -> None:
        await self.ai.close()
        await self.deck_client.close()

    async def __aenter__(self) -> "Workflow":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
