from __future__ import annotations

import random
from collections import Counter

import pytest

from fixtures import make_question
from kahoot_quiz.quizzer.manager.compose import (
    compose_session,
    partition_weak,
    reshuffle_answers,
)
from kahoot_quiz.quizzer.utils import shuffle


def _bank(count: int):
    return [
        make_question(f"Question {i}", {"yes": True, "no": False}, qid=f"{i} Quiz")
        for i in range(count)
    ]


@pytest.mark.parametrize("size", [0, 1, 2, 5, 17])
def test_shuffle_is_a_permutation(size):
    rnd = random.Random(size)
    items = [i % 3 for i in range(size)]

    out = shuffle(items, rnd)

    assert len(out) == len(items)
    assert Counter(out) == Counter(items)


def test_shuffle_does_not_mutate_input():
    items = [1, 2, 3, 4, 5]
    shuffle(items, random.Random(1))
    assert items == [1, 2, 3, 4, 5]


def test_shuffle_reaches_every_ordering():
    rnd = random.Random(2024)
    seen = Counter(tuple(shuffle("abc", rnd)) for _ in range(3000))
    assert len(seen) == 6
    # uniform: each of 6 orderings near 500
    assert all(350 < count < 650 for count in seen.values())


def test_partition_tags_copies_without_mutating_input():
    bank = _bank(3)
    weaknesses = {"Question 1"}

    weak, normal = partition_weak(bank, weaknesses)

    assert [q.question_text for q in weak] == ["Question 1"]
    assert weak[0].is_weakness is True
    assert bank[1].is_weakness is False
    assert [q.question_text for q in normal] == ["Question 0", "Question 2"]


def test_compose_puts_weak_questions_first(rng):
    bank = _bank(10)
    weaknesses = {"Question 3", "Question 7", "not in this batch"}

    ordered = compose_session(bank, weaknesses, rng=rng)

    assert len(ordered) == 10
    assert {q.question_text for q in ordered[:2]} == {"Question 3", "Question 7"}
    assert all(q.is_weakness for q in ordered[:2])
    assert not any(q.is_weakness for q in ordered[2:])
    assert Counter(q.id for q in ordered) == Counter(q.id for q in bank)


def test_compose_without_weaknesses_shuffles_everything():
    bank = _bank(8)
    orders = {
        tuple(q.id for q in compose_session(bank, set(), rng=random.Random(s)))
        for s in range(10)
    }
    assert len(orders) > 1


def test_weakness_matches_by_text_not_id(rng):
    twins = [
        make_question("Same prompt", {"a": True, "b": False}, qid="1 Quiz"),
        make_question("Same prompt", {"a": True, "b": False}, qid="8 Quiz"),
        make_question("Other", {"a": True, "b": False}, qid="9 Quiz"),
    ]

    ordered = compose_session(twins, {"Same prompt"}, rng=rng)

    assert [q.is_weakness for q in ordered] == [True, True, False]
    assert {q.id for q in ordered[:2]} == {"1 Quiz", "8 Quiz"}


def test_reshuffle_answers_keeps_question_order(rng):
    bank = [
        make_question(f"Q{i}", {"A": True, "B": False, "C": False, "D": False})
        for i in range(6)
    ]
    bank[2] = bank[2].with_weakness()

    retried = reshuffle_answers(bank, rng=rng)

    assert [q.question_text for q in retried] == [q.question_text for q in bank]
    assert retried[2].is_weakness is True
    for before, after in zip(bank, retried):
        assert Counter(before.answers) == Counter(after.answers)
    assert any(
        before.answers != after.answers for before, after in zip(bank, retried)
    )
