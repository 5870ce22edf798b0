import logging
import random

from typing import AbstractSet, List, Optional, Sequence, Tuple

from ..models import Question
from ..utils import shuffle

logger = logging.getLogger(__name__)


def partition_weak(
    questions: Sequence[Question], weaknesses: AbstractSet[str]
) -> Tuple[List[Question], List[Question]]:
    """Split questions into (weak, normal) by question text.

    Weak entries are tagged copies; the input questions are left untouched.
    Matching is by text, so two sheets that share a prompt share a weakness.
    """
    weak: List[Question] = []
    normal: List[Question] = []
    for q in questions:
        if q.question_text in weaknesses:
            weak.append(q.with_weakness())
        else:
            normal.append(q)
    return weak, normal


def compose_session(
    questions: Sequence[Question],
    weaknesses: AbstractSet[str],
    *,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """Order questions for a new attempt: shuffled weak ones, then the rest."""
    rnd = rng or random.Random()
    weak, normal = partition_weak(questions, weaknesses)
    ordered = shuffle(weak, rnd) + shuffle(normal, rnd)
    logger.info(
        "Composed session",
        extra={"weak_count": len(weak), "normal_count": len(normal)},
    )
    return ordered


def reshuffle_answers(
    questions: Sequence[Question], *, rng: Optional[random.Random] = None
) -> List[Question]:
    """Retry path: keep question order, draw a fresh answer order for each."""
    rnd = rng or random.Random()
    return [q.with_answers(shuffle(q.answers, rnd)) for q in questions]
