"""
Analysis session state machine for the UI.

    Idle ──submit──► Analyzing ──complete──► Result
     ▲  ╰─edit─╯         │                    │  ╰─set_mode─╯
     ╰──────cancel───────╯                    │
     ╰──────────────────reset─────────────────╯

Idle keeps the form fields, Result keeps the analysis and the chosen
explanation mode. The engine call is synchronous; only the optional
delay before it is awaited and can be cancelled.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Union

from .explanations import ExplainMode, explain
from .models import AnalysisResult
from .rules import RuleEngine

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "Idle"
    ANALYZING = "Analyzing"
    RESULT = "Result"


VALID_TRANSITIONS: Dict[Phase, Set[Phase]] = {
    Phase.IDLE: {Phase.IDLE, Phase.ANALYZING},
    Phase.ANALYZING: {Phase.RESULT, Phase.IDLE},
    Phase.RESULT: {Phase.RESULT, Phase.IDLE},
}


class InvalidTransition(RuntimeError):
    pass


class EmptySubmission(ValueError):
    """Raised when neither text nor url was provided."""


@dataclass(frozen=True)
class Idle:
    text: str = ""
    url: str = ""
    phase = Phase.IDLE


@dataclass(frozen=True)
class Analyzing:
    text: str
    url: str
    phase = Phase.ANALYZING


@dataclass(frozen=True)
class ResultState:
    result: AnalysisResult
    mode: ExplainMode = ExplainMode.NORMAL
    phase = Phase.RESULT


State = Union[Idle, Analyzing, ResultState]


class AnalysisSession:
    def __init__(self, engine: RuleEngine, delay: float = 0.0):
        self.engine = engine
        self.delay = max(0.0, float(delay))
        self._state: State = Idle()

    @property
    def state(self) -> State:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def _move(self, new: State, reason: str):
        old = self._state.phase
        if new.phase not in VALID_TRANSITIONS[old]:
            raise InvalidTransition(f"{reason}: cannot go from {old.value} to {new.phase.value}")
        logger.debug("Session %s -> %s (%s)", old.value, new.phase.value, reason)
        self._state = new

    def _require(self, phase: Phase, action: str):
        if self._state.phase != phase:
            raise InvalidTransition(f"{action} is not allowed while {self._state.phase.value}")

    def edit(self, text: Optional[str] = None, url: Optional[str] = None):
        self._require(Phase.IDLE, "edit")
        cur = self._state
        self._move(
            Idle(text=cur.text if text is None else text, url=cur.url if url is None else url),
            "edit",
        )

    def submit(self):
        self._require(Phase.IDLE, "submit")
        cur = self._state
        if not cur.text.strip() and not cur.url.strip():
            raise EmptySubmission("Paste a message or a URL to analyze.")
        self._move(Analyzing(text=cur.text, url=cur.url), "submit")

    def complete(self) -> AnalysisResult:
        self._require(Phase.ANALYZING, "complete")
        cur = self._state
        result = self.engine.analyze(cur.text, cur.url)
        self._move(ResultState(result=result), "complete")
        return result

    def cancel(self):
        self._require(Phase.ANALYZING, "cancel")
        cur = self._state
        self._move(Idle(text=cur.text, url=cur.url), "cancel")

    def set_mode(self, mode: ExplainMode):
        self._require(Phase.RESULT, "set_mode")
        self._move(ResultState(result=self._state.result, mode=ExplainMode(mode)), "set_mode")

    def reset(self):
        self._require(Phase.RESULT, "reset")
        self._move(Idle(), "reset")

    def explanation(self):
        self._require(Phase.RESULT, "explanation")
        return explain(self._state.result, self._state.mode)

    async def run(self) -> AnalysisResult:
        """Submit the current form, wait the configured delay, then analyze."""
        self.submit()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancel()
            raise
        return self.complete()
