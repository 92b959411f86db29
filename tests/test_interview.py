import random

import pytest
from careerkit.interview import (
    InterviewAnswerScorer, evaluate_answer_heuristic, select_questions, summarize_interview,
)

STRONG_ANSWER = (
    "I would sort the input first and then scan it once, which gives O(n log n) time overall "
    "because the sort dominates the linear scan. For example, merging overlapping meeting "
    "intervals works this way: after sorting by start time each interval only needs to be "
    "compared with the last merged one. A hash map would not help here since ordering matters, "
    "and the extra memory stays linear in the worst case. In production I would also add tests "
    "for empty input, a single interval and fully nested intervals to confirm the edge cases behave."
)


def test_non_answer_scores_at_the_floor(fixed_rng):
    for value in (0.0, 0.5, 0.999):
        evaluation = evaluate_answer_heuristic("Explain a heap.", "I don't know", rng=fixed_rng(value))

        assert 5 <= evaluation.overall_score <= 20
        assert evaluation.rating == 'Needs Improvement'
        assert evaluation.follow_up_question is None


def test_non_answer_never_gets_follow_up_even_when_offered(fixed_rng):
    evaluation = evaluate_answer_heuristic(
        "Explain a heap.", "no idea", category="Data Structures",
        rng=fixed_rng(0.9), offer_follow_up=True,
    )
    assert evaluation.follow_up_question is None


def test_strong_answer_detects_every_signal(fixed_rng):
    assert len(STRONG_ANSWER.split()) >= 50
    scorer = InterviewAnswerScorer(rng=fixed_rng(0.0))

    signals = scorer.detect_signals(STRONG_ANSWER)
    assert signals['has_keywords']
    assert signals['has_examples']
    assert signals['has_explanation']
    assert not signals['is_non_answer']
    assert scorer.base_score(signals) == 85


def test_strong_answer_is_rated_highly(fixed_rng):
    evaluation = evaluate_answer_heuristic(
        "How would you merge overlapping intervals?", STRONG_ANSWER,
        category="Algorithms", rng=fixed_rng(0.0), offer_follow_up=True,
    )

    assert evaluation.relevance_score == 95
    assert evaluation.depth_score == 100
    assert evaluation.clarity_score == 100
    assert evaluation.overall_score == 98
    assert evaluation.rating == 'Excellent'
    assert evaluation.follow_up_question == "Can you code this solution?"
    assert evaluation.suggestions == []


def test_follow_up_coin_flip_uses_rng(fixed_rng):
    # random() == 0.0 loses the coin flip
    evaluation = evaluate_answer_heuristic(
        "How would you merge overlapping intervals?", STRONG_ANSWER,
        category="Algorithms", rng=fixed_rng(0.0),
    )
    assert evaluation.follow_up_question is None

    evaluation = evaluate_answer_heuristic(
        "How would you merge overlapping intervals?", STRONG_ANSWER,
        category="Algorithms", rng=fixed_rng(0.9),
    )
    assert evaluation.follow_up_question == "What is the space complexity?"


def test_unknown_category_has_no_follow_up(fixed_rng):
    evaluation = evaluate_answer_heuristic(
        "Q", STRONG_ANSWER, category="Frontend", rng=fixed_rng(0.0), offer_follow_up=True,
    )
    assert evaluation.follow_up_question is None


def test_short_answer_stays_low(fixed_rng):
    answer = "A hash table maps keys to buckets using a hash function."
    evaluation = evaluate_answer_heuristic("Explain a hash table.", answer, rng=fixed_rng(0.999))
    assert evaluation.overall_score < 60
    assert evaluation.feedback == []
    assert evaluation.suggestions == [
        'Make sure to address all parts of the question directly.',
        'Try to provide specific examples or use cases.',
    ]


@pytest.mark.parametrize("answer", ["", "   ", "\n\n", "x" * 5000])
def test_any_text_is_scored_without_error(answer):
    evaluation = evaluate_answer_heuristic("Q", answer)
    assert 5 <= evaluation.overall_score <= 100


@pytest.mark.parametrize("score,label", [
    (100, 'Excellent'), (80, 'Excellent'), (79, 'Good'), (60, 'Good'),
    (59, 'Satisfactory'), (40, 'Satisfactory'), (39, 'Needs Improvement'), (5, 'Needs Improvement'),
])
def test_rating_bands(score, label):
    assert InterviewAnswerScorer().rating(score) == label


def test_select_questions_spreads_over_focus_areas(seeded_rng):
    plan = select_questions('mid', ['Data Structures', 'Algorithms'], 5, rng=seeded_rng)

    assert plan.total_questions == 5
    assert len(plan.questions) == 5
    assert {q.category for q in plan.questions} <= {'Data Structures', 'Algorithms'}
    assert len({q.id for q in plan.questions}) == 5
    assert all(1 <= q.id <= 6 for q in plan.questions)


def test_select_questions_is_reproducible_with_a_seed():
    first = select_questions('senior', ['System Design'], 3, rng=random.Random(3))
    second = select_questions('senior', ['System Design'], 3, rng=random.Random(3))
    assert [q.question for q in first.questions] == [q.question for q in second.questions]


def test_select_questions_maps_level_onto_bank_tier(seeded_rng):
    plan = select_questions('strong-junior', ['Behavioral'], 2, rng=seeded_rng)
    assert plan.level == 'strong-junior'
    assert plan.total_questions == 2


@pytest.mark.parametrize("level,areas,count", [
    ('principal', ['Algorithms'], 5),
    ('mid', [], 5),
    ('mid', ['Algorithms'], 0),
])
def test_select_questions_rejects_bad_requests(level, areas, count):
    with pytest.raises(ValueError):
        select_questions(level, areas, count)


def test_summarize_interview():
    summary = summarize_interview([
        {"category": "Algorithms", "score": 80},
        {"category": "Algorithms", "score": 90},
        {"category": "System Design", "score": 40},
    ])

    assert summary.overall_score == 70
    assert [(c.category, c.avg_score, c.questions_count) for c in summary.category_scores] == [
        ('Algorithms', 85, 2), ('System Design', 40, 1),
    ]
    assert summary.strengths == ['Algorithms']
    assert summary.weaknesses == ['System Design']
    assert summary.study_recommendations == [
        'Review System Design fundamentals and practice more problems.'
    ]
    assert summary.readiness_level == 'Ready for Mid-level Interviews'
    assert summary.recommendation == 'You are well-prepared. Focus on real interview practice.'
    assert summary.total_questions == 3


def test_summarize_interview_defaults_for_middling_scores():
    summary = summarize_interview([{"category": "Behavioral", "score": 55}])
    assert summary.strengths == ['Completed the full interview']
    assert summary.weaknesses == ['Keep practicing to maintain your skills']
    assert summary.readiness_level == 'Approaching Interview Ready'
    assert summary.recommendation == 'Keep studying and practicing. Consider mock interviews.'


def test_summarize_interview_requires_answers():
    with pytest.raises(ValueError):
        summarize_interview([])


def test_same_seed_gives_same_evaluation():
    first = evaluate_answer_heuristic("Q", STRONG_ANSWER, "Algorithms", rng=random.Random(11))
    second = evaluate_answer_heuristic("Q", STRONG_ANSWER, "Algorithms", rng=random.Random(11))
    assert first == second


def test_missing_category_uses_default_follow_up_pool(fixed_rng):
    evaluation = evaluate_answer_heuristic("Q", STRONG_ANSWER, rng=fixed_rng(0.0), offer_follow_up=True)
    assert evaluation.follow_up_question == "Can you walk me through the time complexity of that operation?"


def test_answer_that_mentions_passing_is_not_a_non_answer(fixed_rng):
    answer = "The tests pass " + STRONG_ANSWER
    scorer = InterviewAnswerScorer(rng=fixed_rng(0.0))

    assert not scorer.detect_signals(answer)['is_non_answer']
    assert scorer.evaluate("How would you merge overlapping intervals?", answer).overall_score >= 80


@pytest.mark.parametrize("answer", ["Pass.", "skip", "  pass on this one", "I'll pass", "Can we skip this question?"])
def test_declining_to_answer_is_a_non_answer(answer):
    assert InterviewAnswerScorer().detect_signals(answer)['is_non_answer']
