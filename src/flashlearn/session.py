"""Walk a drill session block by block and keep score."""
import logging
from enum import Enum

from flashlearn.exercises import grade

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NO_CONTENT = "no_content"
    RUNNING = "running"
    BLOCK_COMPLETE = "block_complete"
    SESSION_COMPLETE = "session_complete"
    CANCELLED = "cancelled"


class SessionStateError(RuntimeError):
    """Raised when the runner is driven in a way its current state forbids."""


class SessionRunner:
    """State machine for one drill session.

    Every answer is graded, written to the store straight away and counted
    toward the score. Finishing a block pauses in ``BLOCK_COMPLETE`` until
    ``continue_session()`` is called.
    """

    def __init__(self, blocks, store):
        self.blocks = [tuple(b) for b in blocks if b]
        self.store = store
        self.block_index = 0
        self.task_index = 0
        self.correct_count = 0
        self.answered_count = 0
        self.total_tasks = sum(len(b) for b in self.blocks)
        self.state = SessionState.RUNNING if self.blocks else SessionState.NO_CONTENT

    @property
    def current_block(self) -> tuple:
        if self.state in (SessionState.RUNNING, SessionState.BLOCK_COMPLETE):
            return self.blocks[self.block_index]
        return ()

    @property
    def current_task(self):
        if self.state is SessionState.RUNNING:
            return self.blocks[self.block_index][self.task_index]
        return None

    @property
    def is_last_block(self) -> bool:
        return self.block_index == len(self.blocks) - 1

    @property
    def final_score(self) -> float | None:
        """Share of tasks answered correctly, once the session is complete."""
        if self.state is not SessionState.SESSION_COMPLETE:
            return None
        return self.correct_count / self.total_tasks

    def progress(self) -> tuple[int, int]:
        return self.answered_count, self.total_tasks

    def _require(self, state: SessionState, action: str) -> None:
        if self.state is not state:
            raise SessionStateError(f"Cannot {action} while session is {self.state.value}")

    def answer(self, response) -> bool:
        """Grade ``response`` for the current task and move on. Returns correctness."""
        self._require(SessionState.RUNNING, "answer")
        task = self.current_task
        is_correct = grade(task, response)
        self.store.update_study_state(task.card.id, is_correct)
        self.answered_count += 1
        if is_correct:
            self.correct_count += 1
        if self.task_index + 1 < len(self.blocks[self.block_index]):
            self.task_index += 1
        else:
            self.state = SessionState.BLOCK_COMPLETE
        return is_correct

    def continue_session(self) -> SessionState:
        """Acknowledge the pacing break and start the next block (or finish)."""
        self._require(SessionState.BLOCK_COMPLETE, "continue")
        if self.is_last_block:
            self.state = SessionState.SESSION_COMPLETE
            logger.debug("Session complete: %d/%d correct", self.correct_count, self.total_tasks)
        else:
            self.block_index += 1
            self.task_index = 0
            self.state = SessionState.RUNNING
        return self.state

    def cancel(self) -> None:
        """Abandon the session. Answers already stored are kept."""
        if self.state is SessionState.SESSION_COMPLETE:
            raise SessionStateError("Cannot cancel a completed session")
        self.blocks = []
        self.correct_count = 0
        self.answered_count = 0
        self.state = SessionState.CANCELLED
