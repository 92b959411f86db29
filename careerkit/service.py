import random
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .analyzer import analyze_fallback, extract_company_name
from .extractor import CVExtractor
from .interview import evaluate_answer_heuristic, select_questions, summarize_interview
from .llm import LLMClient
from .prompt_handler import PromptHandler
from .quality import calculate_cv_scores
from .schemas import (
    AnswerRecord, CVAnalysisResponse, CVBlock, CVQualityScores, EvaluationResponse,
    InterviewPlan, InterviewSummary, ScoredAnswer, parse_block,
)
from .tables import InterviewTables, ScoringTables, load_interview_tables, load_tables

logger = logging.getLogger(__name__)

FALLBACK_MODEL = 'fallback'
AI_FAILURES = (RuntimeError, ValueError, TimeoutError)


class CareerService:
    """
    Entry point for CV analysis, CV scoring and mock interviews.

    AI analysis and answer evaluation are tried first when an OpenRouter key is
    configured; any classified AI failure downgrades the request to the
    heuristic scorers so the caller always gets a result.
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        tables: Optional[ScoringTables] = None,
        interview_tables: Optional[InterviewTables] = None,
        rng: Optional[random.Random] = None,
        extractor: Optional[CVExtractor] = None,
    ):
        self.llm = llm or LLMClient()
        self.tables = tables or load_tables()
        self.interview_tables = interview_tables or load_interview_tables()
        self.rng = rng or random.Random()
        self.extractor = extractor or CVExtractor()

    def analyze_cv(
        self,
        cv_text: str,
        job_description: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> CVAnalysisResponse:
        if not cv_text or not cv_text.strip():
            raise ValueError("CV text is required")

        if not company_name and job_description:
            company_name = extract_company_name(job_description, self.tables.cv_analysis.company_stopwords)
            if company_name:
                logger.info(f"Detected target company: {company_name}")

        try:
            messages = PromptHandler.create_analysis_prompt(cv_text, job_description, company_name)
            completion = self.llm.complete(messages, temperature=0.7, max_tokens=2000, feature='cv_analysis')
            analysis = PromptHandler.parse_analysis(completion.content)
            return CVAnalysisResponse(
                analysis=analysis,
                tokens_used=completion.tokens_used,
                latency_ms=completion.latency_ms,
                model=completion.model,
                source='ai',
                extracted_text_length=len(cv_text),
                detected_company=company_name,
            )
        except AI_FAILURES as e:
            logger.warning(f"AI analysis unavailable, using heuristic fallback: {str(e)}")

        analysis = analyze_fallback(cv_text, job_description, tables=self.tables, rng=self.rng)
        return CVAnalysisResponse(
            analysis=analysis,
            tokens_used=0,
            model=FALLBACK_MODEL,
            source='heuristic',
            extracted_text_length=len(cv_text),
            detected_company=company_name,
        )

    def analyze_upload(
        self,
        file_bytes: bytes,
        filename: str,
        job_description: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> CVAnalysisResponse:
        """Extract text from an uploaded CV file and analyze it."""
        cv_text = self.extractor.extract_text(file_bytes, filename)
        if not cv_text.strip():
            raise ValueError("Could not extract text from file. Please try a different format.")
        logger.info(f"Extracted {len(cv_text)} characters from {filename}")
        return self.analyze_cv(cv_text, job_description, company_name)

    def evaluate_answer(
        self,
        question: Union[str, Dict[str, Any], AnswerRecord],
        answer: Optional[str] = None,
        level: str = 'mid',
    ) -> EvaluationResponse:
        """
        Evaluate one interview answer.

        ``question`` is the question text, a mapping with ``question`` and
        optionally ``id`` and ``category`` keys, or an ``AnswerRecord``, whose
        ``answer_text`` is used when ``answer`` is not given.
        """
        question_id = None
        if isinstance(question, AnswerRecord):
            question_text, category = question.question, question.category or None
            if answer is None:
                answer = question.answer_text
        elif isinstance(question, dict):
            question_text = question.get('question') or ''
            question_id = question.get('id')
            category = question.get('category')
        else:
            question_text, category = question or '', None

        if not question_text.strip() or not answer:
            raise ValueError("Question and answer are required")

        try:
            messages = PromptHandler.create_evaluation_prompt(question_text, answer, level)
            completion = self.llm.complete(messages, temperature=0.5, max_tokens=800, feature='interview_eval')
            evaluation = PromptHandler.parse_evaluation(completion.content)
            return EvaluationResponse(
                question_id=question_id,
                evaluation=evaluation,
                tokens_used=completion.tokens_used,
                latency_ms=completion.latency_ms,
                model=completion.model,
                source='ai',
            )
        except AI_FAILURES as e:
            logger.warning(f"AI evaluation unavailable, using heuristic fallback: {str(e)}")

        evaluation = evaluate_answer_heuristic(
            question_text, answer, category, level, tables=self.tables, rng=self.rng,
        )
        return EvaluationResponse(
            question_id=question_id,
            evaluation=evaluation,
            tokens_used=0,
            model=FALLBACK_MODEL,
            source='heuristic',
        )

    def score_cv_blocks(self, blocks: Sequence[Union[CVBlock, Dict[str, Any]]]) -> CVQualityScores:
        """Score CV blocks; raw dicts are validated, typed blocks pass through."""
        typed = [parse_block(block) if isinstance(block, dict) else block for block in blocks]
        return calculate_cv_scores(typed, tables=self.tables)

    def plan_interview(self, level: str, focus_areas: List[str], question_count: int = 5) -> InterviewPlan:
        plan = select_questions(
            level, focus_areas, question_count, tables=self.interview_tables, rng=self.rng,
        )
        logger.info(f"Planned {plan.total_questions} {level} questions over {', '.join(focus_areas)}")
        return plan

    def complete_interview(self, answers: Sequence[Union[ScoredAnswer, Dict[str, Any]]]) -> InterviewSummary:
        return summarize_interview(answers, tables=self.interview_tables)
