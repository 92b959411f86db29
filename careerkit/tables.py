import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent / 'config'
DEFAULT_SCORING_PATH = CONFIG_DIR / 'scoring.yaml'
DEFAULT_INTERVIEW_PATH = CONFIG_DIR / 'interview.yaml'

# (threshold, points) pairs, checked in order
Bands = List[Tuple[int, int]]


class AnalysisRule(BaseModel):
    signal: str
    category: str = Field(..., pattern="^(structural|technical|ats|realism)$")
    issue: str
    improvement: str


class StructuralAxis(BaseModel):
    base: int
    long_text_bonus: int
    short_text_bonus: int
    action_verb_bonus: int
    jitter: int


class TechnicalAxis(BaseModel):
    with_skills: int
    with_skills_jitter: int
    without_skills: int
    without_skills_jitter: int


class AtsAxis(BaseModel):
    base: int
    length_bonus: int
    skills_bonus: int
    jitter: int


class RealismAxis(BaseModel):
    quantified: int
    quantified_jitter: int
    unquantified: int
    unquantified_jitter: int


class AnalysisAxes(BaseModel):
    structural: StructuralAxis
    technical: TechnicalAxis
    ats: AtsAxis
    realism: RealismAxis


class RecruiterDoubts(BaseModel):
    low_score_threshold: int
    low_score: List[str]
    no_quantification: List[str]
    low_realism_threshold: int
    low_realism: List[str]


class FilterRiskBands(BaseModel):
    high_below: int
    medium_below: int


class CVAnalysisTables(BaseModel):
    patterns: Dict[str, str]
    thresholds: Dict[str, int]
    axes: AnalysisAxes
    rules: List[AnalysisRule]
    strengths: Dict[str, str]
    missing_keywords_issue: str
    max_missing_keywords: int = 5
    doubts: RecruiterDoubts
    filter_risk: FilterRiskBands
    company_stopwords: List[str] = []


class CompletenessTable(BaseModel):
    max_raw: int
    name: int
    title: int
    email: int
    phone: int
    summary_bands: Bands
    skills_bands: Bands
    experience_bands: Bands
    education_bands: Bands
    project_bands: Bands


class FormattingTable(BaseModel):
    base: int
    blocks_bands: Bands
    essentials_bonus: int


class ReadabilityTable(BaseModel):
    base: int
    max_avg_sentence: int
    sentence_bonus: int
    summary_min: int
    summary_max: int
    summary_bonus: int


class QualityAtsTable(BaseModel):
    base: int
    email: int
    phone: int
    skills_min_chars: int
    skills: int
    experience: int
    special_chars_penalty: int


class LanguageTable(BaseModel):
    base: int
    length_bands: Bands
    action_verbs_min: int
    action_verbs_bonus: int


class CVQualityTables(BaseModel):
    action_verbs: List[str]
    technical_keywords: List[str]
    quantified_pattern: str
    bullet_chars: str
    ats_unfriendly_chars: List[str]
    completeness: CompletenessTable
    impact_bands: Bands
    bullet_points_each: int
    bullet_points_max: int
    keyword_bands: Bands
    keyword_floor: int
    keyword_each: int
    keyword_suggestion_below: int
    formatting: FormattingTable
    readability: ReadabilityTable
    ats: QualityAtsTable
    language: LanguageTable
    weights: Dict[str, float]
    # CVQualityScores holds at most five suggestions
    max_suggestions: int = Field(5, ge=1, le=5)
    suggestions: Dict[str, str]

    @field_validator('weights')
    @classmethod
    def weights_sum_to_one(cls, weights: Dict[str, float]) -> Dict[str, float]:
        total = sum(weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Quality weights must sum to 1.0, got {total:.3f}")
        return weights


class AnswerBand(BaseModel):
    base: int
    jitter: int
    keyword_bonus: int = 0
    example_bonus: int = 0
    explanation_bonus: int = 0


class AnswerBands(BaseModel):
    non_answer_words: int
    short_words: int
    medium_words: int
    non_answer: AnswerBand
    short: AnswerBand
    medium: AnswerBand
    full: AnswerBand


class InterviewScoringTables(BaseModel):
    keyword_terms: List[str]
    example_markers: List[str]
    explanation_markers: List[str]
    non_answer_markers: List[str]
    structured_min_chars: int
    deep_answer_min_chars: int
    bands: AnswerBands
    adjustments: Dict[str, int]
    overall_floor: int = 5
    feedback_threshold: int
    follow_up_min_score: int
    default_category: str
    feedback: Dict[str, str]
    ratings: List[Tuple[int, str]]
    default_rating: str


class ScoringTables(BaseModel):
    version: int
    cv_analysis: CVAnalysisTables
    cv_quality: CVQualityTables
    interview: InterviewScoringTables


class InterviewSummaryTable(BaseModel):
    strength_min: int
    weakness_below: int
    study_recommendation: str
    default_strength: str
    default_weakness: str
    readiness: List[Tuple[int, str]]
    default_readiness: str
    well_prepared_min: int
    well_prepared: str
    keep_practicing: str


class InterviewTables(BaseModel):
    version: int
    level_tiers: Dict[str, str]
    question_bank: Dict[str, Dict[str, List[str]]]
    follow_ups: Dict[str, List[str]]
    summary: InterviewSummaryTable


def _read_yaml(path: Union[str, Path]) -> Dict:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


@lru_cache(maxsize=None)
def _load_default_tables(path: str) -> ScoringTables:
    tables = ScoringTables.model_validate(_read_yaml(path))
    logger.info(f"Loaded scoring tables v{tables.version} from {path}")
    return tables


def load_tables(path: Optional[Union[str, Path]] = None) -> ScoringTables:
    """
    Load the heuristic scoring tables.

    Args:
        path: YAML file to read. Defaults to $CAREERKIT_TABLES, then to the
            packaged ``config/scoring.yaml``. Loads are cached per path.
    """
    path = path or os.getenv('CAREERKIT_TABLES') or DEFAULT_SCORING_PATH
    return _load_default_tables(str(path))


@lru_cache(maxsize=None)
def _load_interview_tables(path: str) -> InterviewTables:
    return InterviewTables.model_validate(_read_yaml(path))


def load_interview_tables(path: Optional[Union[str, Path]] = None) -> InterviewTables:
    """Load the interview question bank and summary bands."""
    return _load_interview_tables(str(path or DEFAULT_INTERVIEW_PATH))
