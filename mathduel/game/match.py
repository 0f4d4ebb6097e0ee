from collections.abc import Callable
from datetime import datetime

from mathduel.core.config import settings
from mathduel.game.clock import MatchClock
from mathduel.game.questions import Question, QuestionGenerator
from mathduel.models.player import accuracy_percent
from mathduel.models.time_stamp_mixin import utc_now
from mathduel.schemas.room import ScoreSnapshot


class LocalMatch:
    """One player's view of a running match.

    The question only advances after a correct answer, so every client
    consumes the seeded stream at its own pace but in the same order.
    """

    def __init__(
        self,
        seed: int | None,
        duration_sec: int,
        started_at: datetime | None = None,
        points_per_correct: int | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.generator = QuestionGenerator(seed)
        self.clock = MatchClock(now=now)
        self.clock.observe(started_at, duration_sec)
        self.points_per_correct = (
            points_per_correct
            if points_per_correct is not None
            else settings.POINTS_PER_CORRECT
        )
        self.score = 0
        self.attempts = 0
        self.correct = 0
        self.finished = False
        self.question: Question = self.generator.next_question()

    @property
    def question_index(self) -> int:
        return self.generator.draws - 1

    @property
    def accuracy(self) -> int:
        return accuracy_percent(self.correct, self.attempts)

    def submit(self, answer: int) -> bool:
        if self.finished:
            return False
        self.attempts += 1
        if answer != self.question.answer:
            return False
        self.correct += 1
        self.score += self.points_per_correct
        self.question = self.generator.next_question()
        return True

    def should_finish(self) -> bool:
        return not self.finished and self.clock.expired

    def finish(self) -> ScoreSnapshot:
        self.finished = True
        return self.final_snapshot()

    def final_snapshot(self) -> ScoreSnapshot:
        return ScoreSnapshot(
            score=self.score, attempts=self.attempts, correct=self.correct
        )
