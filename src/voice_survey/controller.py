"""Voice-guided answer sequencing.

The controller walks one user through five phases: name, region, every
survey question in order, a confirm-or-continue step and a final submit.
Each phase plays a prompt through the speech gateway and then waits for a
recognized utterance. Prompts never overlap: while one is settling, new
prompt requests are dropped and recognized text is queued, to be replayed
in arrival order once the prompt has settled.

Failures never escape to the host. No speech, unmatched answers and
provider errors re-prompt the same phase after a backoff; after
``max_retries`` consecutive failures the controller moves on rather than
keep the user stuck.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .binder import FormBinder
from .config.settings import FlowSettings
from .models import FlowState
from .normalizer import tokens
from .speech.gateway import SpeechGateway
from .status import StatusBoard

logger = logging.getLogger(__name__)

PromptKey = tuple[FlowState, Optional[str]]


class FlowController:
    """Owns the flow cursor, the speaking guard, the pending input queue and
    the retry counters of one survey-taking session."""

    NAME_PROMPT = "Please say your name"
    STATE_PROMPT = "Please select your state"
    CONFIRM_PROMPT = (
        "All questions completed. Say next to go to the final stage, "
        "or say submit to finish now"
    )
    SUBMIT_PROMPT = "Say submit to finish and submit your response"

    NEXT_WORDS = {"next"}
    SUBMIT_WORDS = {"submit", "finish", "done", "complete"}

    def __init__(self, binder: FormBinder, gateway: SpeechGateway, settings: FlowSettings):
        self.binder = binder
        self.gateway = gateway
        self.settings = settings

        self.state = FlowState.COLLECTING_NAME
        self.speaking = False
        self.pending: asyncio.Queue[str] = asyncio.Queue()
        self.discovery_retries = 0
        self.reprompt_retries = 0
        self.started = False
        self.history: list[tuple[FlowState, FlowState]] = []

        self._draining = False
        self._prompted_for: Optional[PromptKey] = None
        self._timers: set[asyncio.Task] = set()

        gateway.connect(self.on_result, self.on_error)

    @property
    def status(self) -> StatusBoard:
        return self.gateway.status

    # Lifecycle

    async def start(self) -> bool:
        """Begin the flow once the host has signalled readiness.

        Returns False, with the voice toggle disabled, when no speech
        provider is usable.
        """
        if not self.gateway.is_supported():
            logger.warning("Speech is not supported, voice flow disabled")
            self.status.disable("Voice input is not supported on this device")
            return False
        self.started = True
        self._reset()
        await self.prompt()
        return True

    async def restart(self) -> bool:
        """Drop all progress and start again from the name prompt."""
        self._cancel_timers()
        self.speaking = False
        return await self.start()

    async def toggle(self) -> None:
        """Voice button: stop listening if active, else prompt the current phase."""
        if not self.started:
            await self.start()
        elif self.gateway.listening:
            await self.gateway.stop_listening()
        else:
            await self.prompt()

    async def close(self) -> None:
        self._cancel_timers()
        await self.gateway.stop_listening()

    async def wait_idle(self) -> None:
        """Wait until no timer (prompt, retry, settle) is outstanding."""
        while True:
            running = [task for task in self._timers if not task.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    def _reset(self) -> None:
        if self.state != FlowState.COLLECTING_NAME:
            self._set_state(FlowState.COLLECTING_NAME)
        self._reset_retries()
        self.discovery_retries = 0
        self._prompted_for = None
        while not self.pending.empty():
            self.pending.get_nowait()

    # Timers

    def _schedule(self, delay: float, step: Callable[..., Awaitable[None]], *args) -> None:
        task = asyncio.create_task(self._run_later(delay, step, *args))
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)

    async def _run_later(self, delay: float, step: Callable[..., Awaitable[None]], *args) -> None:
        await asyncio.sleep(delay)
        try:
            await step(*args)
        except Exception:
            logger.exception("Voice flow step %s failed", step.__name__)

    def _cancel_timers(self) -> None:
        current = asyncio.current_task()
        for task in list(self._timers):
            if task is not current:
                task.cancel()
                self._timers.discard(task)

    # Prompts

    def _set_state(self, state: FlowState) -> None:
        logger.info("Flow %s -> %s", self.state.name, state.name)
        self.history.append((self.state, state))
        self.state = state

    def _reset_retries(self) -> None:
        self.reprompt_retries = 0

    def _prompt_key(self) -> PromptKey:
        if self.state == FlowState.ANSWERING_QUESTIONS:
            question = self.binder.current_question()
            return (self.state, question.id if question else None)
        return (self.state, None)

    def _prompt_text(self) -> Optional[str]:
        match self.state:
            case FlowState.COLLECTING_NAME:
                return self.NAME_PROMPT
            case FlowState.COLLECTING_STATE:
                return self.STATE_PROMPT
            case FlowState.ANSWERING_QUESTIONS:
                return self.binder.current_question_text() or None
            case FlowState.CONFIRM_OR_CONTINUE:
                return self.CONFIRM_PROMPT
            case FlowState.FINAL_SUBMIT:
                return self.SUBMIT_PROMPT

    async def prompt(self) -> None:
        """Play the entry prompt of the current phase."""
        if not self.started:
            return
        if self.speaking:
            logger.debug("Already speaking, prompt for %s dropped", self.state.name)
            return

        # Question text is read from the form now; the unanswered set shrinks as we go.
        text = self._prompt_text()
        if text is None:
            self._handle_missing_question()
            return

        self.speaking = True
        self._prompted_for = self._prompt_key()
        if not await self.gateway.speak(text, also_listen=True):
            # The error callback has already scheduled the retry.
            self.speaking = False
            return
        self._schedule(self.settings.settle_delay, self._settle)

    async def speak_current_question(self) -> None:
        """Read the current question again; a no-op outside the question phase."""
        if self.state == FlowState.ANSWERING_QUESTIONS:
            await self.prompt()

    async def _settle(self) -> None:
        self.speaking = False
        replayed = await self._drain_pending()
        if self.speaking or not self.started:
            return
        if self._prompt_key() != self._prompted_for:
            # The phase moved on while a prompt was playing; its own prompt was dropped.
            await self.prompt()
        elif not replayed and not self.gateway.listens_after_speaking:
            await self.gateway.start_listening()

    async def _drain_pending(self) -> int:
        """Replay utterances queued while speaking, in arrival order."""
        if self.pending.empty():
            return 0
        logger.info("Processing %d pending utterance(s)", self.pending.qsize())
        replayed = 0
        self._draining = True
        try:
            while self.started and not self.pending.empty():
                utterance = self.pending.get_nowait()
                await asyncio.sleep(self.settings.queue_stagger)
                await self.advance(utterance)
                replayed += 1
        finally:
            self._draining = False
        return replayed

    def _handle_missing_question(self) -> None:
        if not self.binder.has_unanswered():
            logger.info("All questions answered")
            self._enter(FlowState.CONFIRM_OR_CONTINUE)
            return

        self.discovery_retries += 1
        if self.discovery_retries < self.settings.max_retries:
            logger.warning(
                "Unanswered questions remain but none could be located, retry %d/%d",
                self.discovery_retries, self.settings.max_retries,
            )
            self._schedule(self.settings.transition_delay, self.prompt)
        else:
            logger.warning("Question discovery exhausted, moving to confirmation")
            self._enter(FlowState.CONFIRM_OR_CONTINUE)

    def _enter(self, state: FlowState) -> None:
        """Move to `state` and prompt it after the transition delay."""
        self._set_state(state)
        self._reset_retries()
        self.discovery_retries = 0
        self._schedule(self.settings.transition_delay, self.prompt)

    # Recognition callbacks

    async def on_result(self, text: str) -> None:
        """Recognized text from the speech gateway."""
        if not self.started:
            logger.info("Voice flow not running, utterance ignored")
            return
        if not text or not text.strip():
            await self._no_speech()
            return
        if self.speaking or self._draining:
            logger.info("Prompt in progress, utterance queued")
            await self.pending.put(text)
            return
        await self.advance(text)

    async def on_error(self, code: str) -> None:
        logger.warning("Speech recognition error: %s", code)
        if self.started and self.state < FlowState.CONFIRM_OR_CONTINUE:
            self._retry_phase(self.settings.error_retry_delay)
        else:
            self._keep_listening(self.settings.error_retry_delay)

    async def _no_speech(self) -> None:
        logger.info("No speech detected")
        if self.started and self.state < FlowState.CONFIRM_OR_CONTINUE:
            self._retry_phase(self.settings.no_speech_retry_delay)
        else:
            self._keep_listening(self.settings.no_speech_retry_delay)

    def _retry_phase(self, delay: float) -> None:
        """Re-prompt the current phase, or move on once the retry bound is hit."""
        self.reprompt_retries += 1
        if self.reprompt_retries < self.settings.max_retries:
            self._schedule(delay, self.prompt)
        else:
            self._force_advance()

    def _keep_listening(self, delay: float) -> None:
        """Phases 3 and 4 wait for a command; listen again when the provider will not."""
        if self.started and not self.gateway.listens_after_speaking:
            self._schedule(delay, self.gateway.start_listening)

    def _force_advance(self) -> None:
        logger.warning("Retry bound reached in %s, moving on", self.state.name)
        match self.state:
            case FlowState.COLLECTING_NAME:
                self._enter(FlowState.COLLECTING_STATE)
            case FlowState.COLLECTING_STATE:
                self._enter(FlowState.ANSWERING_QUESTIONS)
            case FlowState.ANSWERING_QUESTIONS:
                question = self.binder.current_question()
                if question is not None:
                    self.binder.form.mark_skipped(question)
                self._reset_retries()
                self._schedule(self.settings.transition_delay, self.prompt)

    # Phase handlers

    async def advance(self, text: str) -> None:
        """Apply one utterance to the current phase."""
        logger.info("Handling utterance in %s", self.state.name)
        match self.state:
            case FlowState.COLLECTING_NAME:
                self._handle_name(text)
            case FlowState.COLLECTING_STATE:
                self._handle_region(text)
            case FlowState.ANSWERING_QUESTIONS:
                self._handle_answer(text)
            case FlowState.CONFIRM_OR_CONTINUE:
                await self._handle_confirm(text)
            case FlowState.FINAL_SUBMIT:
                await self._handle_final(text)

    def _handle_name(self, text: str) -> None:
        if self.binder.commit_name(text):
            self._enter(FlowState.COLLECTING_STATE)
        else:
            self._not_understood()

    def _handle_region(self, text: str) -> None:
        if self.binder.commit_region(text):
            self._enter(FlowState.ANSWERING_QUESTIONS)
        else:
            self._not_understood()

    def _handle_answer(self, text: str) -> None:
        question = self.binder.current_question()
        if question is None:
            self._schedule(self.settings.transition_delay, self.prompt)
            return
        if self.binder.commit_answer(question, text):
            self._reset_retries()
            self.discovery_retries = 0
            self._schedule(self.settings.transition_delay, self.prompt)
        else:
            self._not_understood()

    def _not_understood(self) -> None:
        self.status.update("Not understood, please try again")
        self._retry_phase(self.settings.no_speech_retry_delay)

    async def _handle_confirm(self, text: str) -> None:
        words = set(tokens(text))
        if words & self.NEXT_WORDS:
            self._enter(FlowState.FINAL_SUBMIT)
        elif words & self.SUBMIT_WORDS:
            await self._submit()
        else:
            logger.info("Expected next or submit")
            self._keep_listening(self.settings.no_speech_retry_delay)

    async def _handle_final(self, text: str) -> None:
        if set(tokens(text)) & self.SUBMIT_WORDS:
            await self._submit()
        else:
            logger.info("Expected submit")
            self._keep_listening(self.settings.no_speech_retry_delay)

    async def _submit(self) -> None:
        form = self.binder.form
        if not form.can_submit:
            logger.error("Submit control not found")
            return
        try:
            response = await form.submit()
        except Exception as exc:
            logger.exception("Submission failed")
            self.status.update(f"Error: {exc}")
            return
        logger.info("Response %s submitted", response.id)
        self.status.update("Submitted")
        self._cancel_timers()
        self.speaking = False
        self.started = False
        self._reset()
