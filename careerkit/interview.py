import math
import random
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union
import logging

from .matcher import PatternMatcher, clamp, round_half_up
from .schemas import (
    AnswerEvaluation, CategoryScore, InterviewPlan, InterviewQuestion,
    InterviewSummary, ScoredAnswer,
)
from .tables import InterviewTables, ScoringTables, load_interview_tables, load_tables

logger = logging.getLogger(__name__)


class InterviewAnswerScorer:
    """
    Strict heuristic evaluation of a free-text interview answer.

    The base score is banded by answer length before any keyword bonus is
    applied, so evasive or very short answers cannot score well no matter
    which technical terms they contain.
    """

    def __init__(
        self,
        tables: Optional[ScoringTables] = None,
        interview_tables: Optional[InterviewTables] = None,
        rng: Optional[random.Random] = None,
    ):
        self.tables = (tables or load_tables()).interview
        self.follow_ups = (interview_tables or load_interview_tables()).follow_ups
        self.rng = rng or random.Random()

        self.keywords = PatternMatcher.compile_alternation(self.tables.keyword_terms)
        self.examples = PatternMatcher.compile_alternation(self.tables.example_markers)
        self.explanations = PatternMatcher.compile_alternation(self.tables.explanation_markers)
        self.non_answers = PatternMatcher.compile_alternation(self.tables.non_answer_markers)

    def detect_signals(self, answer_text: str) -> Dict[str, object]:
        return {
            'word_count': len(answer_text.split()),
            'length': len(answer_text.strip()),
            'has_keywords': self.keywords.search(answer_text) is not None,
            'has_examples': self.examples.search(answer_text) is not None,
            'is_structured': '\n' in answer_text or len(answer_text) > self.tables.structured_min_chars,
            'has_explanation': self.explanations.search(answer_text) is not None,
            'is_non_answer': self.non_answers.search(answer_text) is not None,
        }

    def base_score(self, signals: Dict[str, object]) -> float:
        bands = self.tables.bands
        word_count = signals['word_count']
        jitter = self.rng.random()

        if signals['is_non_answer'] or word_count < bands.non_answer_words:
            band = bands.non_answer
            return band.base + jitter * band.jitter
        if word_count < bands.short_words:
            band = bands.short
            return band.base + jitter * band.jitter
        if word_count < bands.medium_words:
            band = bands.medium
            return band.base + (band.keyword_bonus if signals['has_keywords'] else 0) + jitter * band.jitter

        band = bands.full
        return (
            band.base
            + (band.keyword_bonus if signals['has_keywords'] else 0)
            + (band.example_bonus if signals['has_examples'] else 0)
            + (band.explanation_bonus if signals['has_explanation'] else 0)
            + jitter * band.jitter
        )

    def evaluate(
        self,
        question: str,
        answer_text: str,
        category: Optional[str] = None,
        level: str = 'mid',
        offer_follow_up: Optional[bool] = None,
    ) -> AnswerEvaluation:
        """
        Score one answer.

        ``level`` is accepted for parity with the AI evaluator and does not
        change the heuristic. ``offer_follow_up`` overrides the coin flip that
        decides whether a follow-up question is offered.
        """
        answer_text = answer_text or ""
        signals = self.detect_signals(answer_text)
        base = self.base_score(signals)
        adj = self.tables.adjustments

        relevance = clamp(base + (adj['relevance_keyword'] if signals['has_keywords'] else adj['relevance_no_keyword']))
        depth = clamp(
            base
            + (adj['depth_long'] if signals['length'] > self.tables.deep_answer_min_chars else adj['depth_short'])
            + (adj['depth_examples'] if signals['has_examples'] else 0)
        )
        clarity = clamp(
            base
            + (adj['clarity_structured'] if signals['is_structured'] else 0)
            + (adj['clarity_explanation'] if signals['has_explanation'] else 0)
        )
        overall = int(clamp(round_half_up((relevance + depth + clarity) / 3), self.tables.overall_floor, 100))

        feedback: List[str] = []
        suggestions: List[str] = []
        messages = self.tables.feedback
        if relevance >= self.tables.feedback_threshold:
            feedback.append(messages['relevance_good'])
        else:
            suggestions.append(messages['relevance_weak'])
        if depth >= self.tables.feedback_threshold:
            feedback.append(messages['depth_good'])
        else:
            suggestions.append(messages['depth_weak'])

        return AnswerEvaluation(
            overall_score=overall,
            relevance_score=round_half_up(relevance),
            depth_score=round_half_up(depth),
            clarity_score=round_half_up(clarity),
            feedback=feedback,
            suggestions=suggestions,
            follow_up_question=self.pick_follow_up(overall, category, offer_follow_up),
            rating=self.rating(overall),
        )

    def pick_follow_up(self, overall_score: int, category: Optional[str], offer: Optional[bool] = None) -> Optional[str]:
        if overall_score <= self.tables.follow_up_min_score:
            return None
        if offer is None:
            offer = self.rng.random() > 0.5
        if not offer:
            return None
        pool = self.follow_ups.get(category or self.tables.default_category, [])
        if not pool:
            return None
        return pool[int(self.rng.random() * len(pool))]

    def rating(self, overall_score: int) -> str:
        for threshold, label in self.tables.ratings:
            if overall_score >= threshold:
                return label
        return self.tables.default_rating


def evaluate_answer_heuristic(
    question: str,
    answer_text: str,
    category: Optional[str] = None,
    level: str = 'mid',
    *,
    tables: Optional[ScoringTables] = None,
    rng: Optional[random.Random] = None,
    offer_follow_up: Optional[bool] = None,
) -> AnswerEvaluation:
    """Score an interview answer heuristically. Never raises on any string input."""
    scorer = InterviewAnswerScorer(tables=tables, rng=rng)
    return scorer.evaluate(question, answer_text, category, level, offer_follow_up)


def select_questions(
    level: str,
    focus_areas: Sequence[str],
    question_count: int = 5,
    *,
    tables: Optional[InterviewTables] = None,
    rng: Optional[random.Random] = None,
) -> InterviewPlan:
    """
    Draw a shuffled set of questions for a mock interview.

    Each focus area contributes up to ceil(count / areas) questions from the
    bank tier for ``level``; the pooled questions are shuffled again and cut
    to ``question_count``.
    """
    tables = tables or load_interview_tables()
    rng = rng or random.Random()

    tier = tables.level_tiers.get(level)
    if tier is None:
        raise ValueError(f"Invalid seniority level: {level}")
    if not focus_areas or question_count < 1:
        raise ValueError("At least one focus area and one question are required")

    per_area = math.ceil(question_count / len(focus_areas))
    drawn = []
    for area in focus_areas:
        area_questions = list(tables.question_bank.get(tier, {}).get(area, []))
        if not area_questions:
            logger.warning(f"No {tier} questions for focus area '{area}'")
        rng.shuffle(area_questions)
        drawn.extend((area, question) for question in area_questions[:per_area])

    questions = [
        InterviewQuestion(id=i, question=question, category=area)
        for i, (area, question) in enumerate(drawn, 1)
    ]
    rng.shuffle(questions)
    questions = questions[:question_count]

    return InterviewPlan(
        level=level,
        focus_areas=list(focus_areas),
        total_questions=len(questions),
        questions=questions,
        started_at=datetime.now(timezone.utc),
    )


def summarize_interview(
    answers: Sequence[Union[ScoredAnswer, Dict]],
    *,
    tables: Optional[InterviewTables] = None,
) -> InterviewSummary:
    """Aggregate per-answer scores into an end-of-interview report."""
    if not answers:
        raise ValueError("Answers required for completion")
    summary = (tables or load_interview_tables()).summary

    scored = [a if isinstance(a, ScoredAnswer) else ScoredAnswer.model_validate(a) for a in answers]
    avg_score = round_half_up(sum(a.score for a in scored) / len(scored))

    by_category: Dict[str, List[float]] = defaultdict(list)
    for answer in scored:
        by_category[answer.category].append(answer.score)

    category_scores = [
        CategoryScore(
            category=category,
            avg_score=round_half_up(sum(scores) / len(scores)),
            questions_count=len(scores),
        )
        for category, scores in by_category.items()
    ]

    strengths: List[str] = []
    weaknesses: List[str] = []
    study_recommendations: List[str] = []
    for entry in category_scores:
        if entry.avg_score >= summary.strength_min:
            strengths.append(entry.category)
        elif entry.avg_score < summary.weakness_below:
            weaknesses.append(entry.category)
            study_recommendations.append(summary.study_recommendation.format(category=entry.category))

    if not strengths:
        strengths.append(summary.default_strength)
    if not weaknesses:
        weaknesses.append(summary.default_weakness)

    readiness_level = summary.default_readiness
    for threshold, label in summary.readiness:
        if avg_score >= threshold:
            readiness_level = label
            break

    return InterviewSummary(
        overall_score=avg_score,
        category_scores=category_scores,
        strengths=strengths,
        weaknesses=weaknesses,
        readiness_level=readiness_level,
        study_recommendations=study_recommendations,
        total_questions=len(scored),
        completed_at=datetime.now(timezone.utc),
        recommendation=summary.well_prepared if avg_score >= summary.well_prepared_min else summary.keep_practicing,
    )
