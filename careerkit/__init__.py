from .analyzer import CVAnalysisScorer, analyze_fallback, extract_company_name
from .quality import CVQualityScorer, calculate_cv_scores
from .interview import InterviewAnswerScorer, evaluate_answer_heuristic, select_questions, summarize_interview
from .extractor import CVExtractor
from .llm import LLMClient
from .service import CareerService
from .schemas import CVAnalysisResult, CVQualityScores, AnswerEvaluation, parse_blocks
from .tables import load_tables, load_interview_tables

__all__ = [
    'CVAnalysisScorer',
    'analyze_fallback',
    'extract_company_name',
    'CVQualityScorer',
    'calculate_cv_scores',
    'InterviewAnswerScorer',
    'evaluate_answer_heuristic',
    'select_questions',
    'summarize_interview',
    'CVExtractor',
    'LLMClient',
    'CareerService',
    'CVAnalysisResult',
    'CVQualityScores',
    'AnswerEvaluation',
    'parse_blocks',
    'load_tables',
    'load_interview_tables'
]
