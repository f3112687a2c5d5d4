"""UnitBuilder agent — drafts a Jest test for one file and repairs it until it passes.

One run is a generation session:

1. Seed the conversation, either with the initial instruction (source
   code plus target test path) or, for an existing failing test, with the
   current test code and its failure.
2. Draft: ask the LLM for test code and record it as an assistant turn.
3. Verify: write the draft and run it through the test adapter.
4. On failure, append the runner output as feedback and draft again,
   at most ``max_attempts`` times after the first draft.

The session ends ``DONE`` when a draft passes and ``EXHAUSTED`` when the
repair budget runs out; an exhausted session leaves its last draft on disk.
``LLMError`` from the engine is not handled here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from autojest.llm.conversation import Conversation
from autojest.llm.engine import GenerationRequest, LLMMessage
from autojest.llm.prompts.base import PromptContext
from autojest.llm.prompts.jest_prompt import JestTemplate

if TYPE_CHECKING:
    from pathlib import Path

    from autojest.adapters.base import ExecutionResult, TestFrameworkAdapter
    from autojest.llm.engine import LLMEngine
    from autojest.llm.prompts.base import PromptTemplate

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class SessionState(Enum):
    """Lifecycle of a generation session."""

    DRAFTING = "drafting"
    VERIFYING = "verifying"
    DONE = "done"
    EXHAUSTED = "exhausted"


@dataclass
class RepairSeed:
    """An existing test and the failure it produced."""

    test_code: str
    """Current content of the test file."""

    error: str
    """Runner output from the failing run."""


@dataclass
class BuildTask:
    """Input for one generation session."""

    source_file: Path
    """Absolute path of the source file under test."""

    test_file: Path
    """Absolute path the test is written to."""

    seed: RepairSeed | None = None
    """Set to repair an existing test instead of drafting from scratch."""


@dataclass
class GenerationSession:
    """State and outcome of one session."""

    source_file: Path
    test_file: Path
    conversation: Conversation = field(default_factory=Conversation)
    state: SessionState = SessionState.DRAFTING
    attempt: int = 0
    """Repair cycles performed so far (0 while on the first draft)."""

    drafts: int = 0
    """Generation calls made."""

    test_code: str = ""
    """Most recent draft."""

    result: ExecutionResult | None = None
    """Most recent verification outcome."""

    errors: list[str] = field(default_factory=list)
    """Failure output of every failed verification, in order."""

    @property
    def succeeded(self) -> bool:
        return self.state is SessionState.DONE


class UnitBuilder:
    """Writes and repairs one unit test file at a time.

    The engine and the test adapter are the only collaborators; both are
    awaited without a timeout of their own.
    """

    def __init__(  # noqa: PLR0913
        self,
        engine: LLMEngine,
        adapter: TestFrameworkAdapter,
        project_root: Path,
        *,
        template: PromptTemplate | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_exchanges: int = 0,
        temperature: float = 1.0,
        max_tokens: int = 4096,
    ) -> None:
        """Initialize the UnitBuilder.

        Args:
            engine: LLM used for drafting.
            adapter: Test executor used as the pass/fail oracle.
            project_root: Paths in prompts are shown relative to this.
            template: Prompt template; defaults to :class:`JestTemplate`.
            max_attempts: Repair cycles allowed after the first draft.
            max_exchanges: Draft/feedback pairs kept per request (0 = all).
            temperature: Sampling temperature for drafts.
            max_tokens: Completion cap for drafts.
        """
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")
        self._engine = engine
        self._adapter = adapter
        self._root = project_root
        self._template = template or JestTemplate()
        self._max_attempts = max_attempts
        self._max_exchanges = max_exchanges
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def run(self, task: BuildTask) -> GenerationSession:
        """Run a full session for *task* and return its final state.

        Raises:
            LLMError: If the engine fails; the session is abandoned.
            SubprocessError: If the test runner cannot be launched.
        """
        session = GenerationSession(source_file=task.source_file, test_file=task.test_file)
        self._seed(session, task)

        while True:
            session.state = SessionState.DRAFTING
            session.test_code = await self._draft(session)

            session.state = SessionState.VERIFYING
            session.result = await self._verify(session)

            if session.result.passed:
                session.state = SessionState.DONE
                logger.info(
                    "Test for %s passed after %d repair(s)", task.source_file, session.attempt
                )
                return session

            session.errors.append(session.result.error)
            if session.attempt >= self._max_attempts:
                session.state = SessionState.EXHAUSTED
                logger.warning(
                    "Giving up on %s after %d repair(s); last draft left at %s",
                    task.source_file,
                    session.attempt,
                    task.test_file,
                )
                return session

            session.conversation.add_user(self._template.repair_message(session.result.error))
            session.attempt += 1
            logger.info(
                "Test for %s failed, repair %d/%d",
                task.source_file,
                session.attempt,
                self._max_attempts,
            )

    # ── Internal helpers ──────────────────────────────────────────

    def _seed(self, session: GenerationSession, task: BuildTask) -> None:
        if task.seed is not None:
            context = PromptContext(
                source_relative=self._relative(task.source_file),
                test_relative=self._relative(task.test_file),
                source_code="",
            )
            session.conversation.seed(
                *self._template.seed_messages(context, task.seed.test_code, task.seed.error)
            )
            return

        context = PromptContext(
            source_relative=self._relative(task.source_file),
            test_relative=self._relative(task.test_file),
            source_code=task.source_file.read_text(encoding="utf-8"),
        )
        session.conversation.seed(self._template.initial_message(context))

    async def _draft(self, session: GenerationSession) -> str:
        messages = [
            LLMMessage(role="system", content=self._template.system_instruction()),
            *session.conversation.window(self._max_exchanges),
        ]
        response = await self._engine.generate(
            GenerationRequest(
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        )
        session.drafts += 1
        session.conversation.add_assistant(response.text)
        return response.text

    async def _verify(self, session: GenerationSession) -> ExecutionResult:
        session.test_file.parent.mkdir(parents=True, exist_ok=True)
        result = await self._adapter.run_test(session.test_file, session.test_code)
        logger.debug(
            "Ran %s in %.0fms: %s",
            session.test_file,
            result.duration_ms,
            "passed" if result.passed else "failed",
        )
        return result

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self._root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()
