import random
import regex as re
from typing import Dict, List, Optional
import logging

from .matcher import PatternMatcher, clamp, round_half_up
from .schemas import CVAnalysisResult
from .tables import ScoringTables, load_tables

logger = logging.getLogger(__name__)

COMPANY_PATTERNS = [
    re.compile(r'(?i:\b(?:at|for|join))\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)?)'),
    re.compile(r'^([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)?)\s+(?i:is\s+(?:looking|hiring|seeking))', re.MULTILINE),
    re.compile(r'(?i:company):\s*([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)?)'),
]


class CVAnalysisScorer:
    """
    Heuristic CV analysis used when the AI analysis is unavailable.

    Scores extracted CV text on four axes (structural, technical, ATS, realism)
    from a handful of regex signals. Each axis gets a bounded random jitter on
    top of its base so near-identical CVs do not produce identical reports;
    pass a seeded ``rng`` to make the output reproducible.
    """

    def __init__(self, tables: Optional[ScoringTables] = None, rng: Optional[random.Random] = None):
        self.tables = (tables or load_tables()).cv_analysis
        self.rng = rng or random.Random()
        self.matcher = PatternMatcher(self.tables.patterns)

    def detect_signals(self, cv_text: str) -> Dict[str, object]:
        """Detect the boolean content signals the axis scores are built from."""
        return {
            'text_length': len(cv_text),
            'has_quantified_achievements': self.matcher.has('quantified_achievements', cv_text),
            'has_technical_skills': self.matcher.has('technical_skills', cv_text),
            'has_action_verbs': self.matcher.has('action_verbs', cv_text),
            'has_contact_info': self.matcher.has('contact_info', cv_text),
        }

    def score(self, cv_text: str, job_description: Optional[str] = None) -> CVAnalysisResult:
        cv_text = cv_text or ""
        signals = self.detect_signals(cv_text)
        axes = self._axis_scores(signals, blank=not cv_text.strip())
        overall_score = round_half_up(sum(axes.values()) / len(axes))

        findings = self._apply_rules(signals)

        job_match_score = None
        missing_keywords: List[str] = []
        if job_description:
            job_match_score, missing_keywords = self.match_job_keywords(cv_text, job_description)
            if missing_keywords:
                findings['ats'].append(
                    self.tables.missing_keywords_issue.format(keywords=', '.join(missing_keywords))
                )

        recruiter_doubts = self._recruiter_doubts(
            overall_score, axes['realism'], signals['has_quantified_achievements']
        )

        strengths = findings['strengths']
        if not strengths:
            strengths.append(self.tables.strengths['default'])

        return CVAnalysisResult(
            overall_score=overall_score,
            structural_score=round_half_up(axes['structural']),
            technical_score=round_half_up(axes['technical']),
            ats_score=round_half_up(axes['ats']),
            realism_score=round_half_up(axes['realism']),
            structural_issues=findings['structural'],
            technical_issues=findings['technical'],
            ats_issues=findings['ats'],
            realism_flags=findings['realism'],
            strengths=strengths,
            improvements=findings['improvements'],
            recruiter_doubts=recruiter_doubts,
            job_match_score=job_match_score,
            missing_keywords=missing_keywords,
            filter_risk=self.filter_risk(overall_score),
        )

    def _jitter(self, span: int, blank: bool) -> float:
        # Blank text sits at the floor of every band
        return 0.0 if blank else self.rng.random() * span

    def _axis_scores(self, signals: Dict[str, object], blank: bool) -> Dict[str, float]:
        axes = self.tables.axes
        length = signals['text_length']
        thresholds = self.tables.thresholds

        s = axes.structural
        structural = (
            s.base
            + (s.long_text_bonus if length > thresholds['long_text'] else s.short_text_bonus)
            + (s.action_verb_bonus if signals['has_action_verbs'] else 0)
            + self._jitter(s.jitter, blank)
        )

        t = axes.technical
        if signals['has_technical_skills']:
            technical = t.with_skills + self._jitter(t.with_skills_jitter, blank)
        else:
            technical = t.without_skills + self._jitter(t.without_skills_jitter, blank)

        a = axes.ats
        ats = (
            a.base
            + (a.length_bonus if length > thresholds['short_text'] else 0)
            + (a.skills_bonus if signals['has_technical_skills'] else 0)
            + self._jitter(a.jitter, blank)
        )

        r = axes.realism
        if signals['has_quantified_achievements']:
            realism = r.quantified + self._jitter(r.quantified_jitter, blank)
        else:
            realism = r.unquantified + self._jitter(r.unquantified_jitter, blank)

        return {
            'structural': clamp(structural),
            'technical': clamp(technical),
            'ats': clamp(ats),
            'realism': clamp(realism),
        }

    def _apply_rules(self, signals: Dict[str, object]) -> Dict[str, List[str]]:
        fired = {
            'short_text': signals['text_length'] < self.tables.thresholds['short_text'],
            'no_action_verbs': not signals['has_action_verbs'],
            'no_technical_skills': not signals['has_technical_skills'],
            'no_quantification': not signals['has_quantified_achievements'],
            'no_contact_info': not signals['has_contact_info'],
        }
        findings = {key: [] for key in ('structural', 'technical', 'ats', 'realism', 'strengths', 'improvements')}

        for rule in self.tables.rules:
            if fired.get(rule.signal):
                findings[rule.category].append(rule.issue)
                findings['improvements'].append(rule.improvement)

        if signals['has_quantified_achievements']:
            findings['strengths'].append(self.tables.strengths['quantified'])
        return findings

    def match_job_keywords(self, cv_text: str, job_description: str):
        """
        Compare job description tokens against the CV.

        Returns:
            Tuple of (job match score, missing keywords). Missing keywords are
            de-duplicated in first-occurrence order and capped.
        """
        job_tokens = PatternMatcher.tokenize(job_description)
        cv_tokens = set(PatternMatcher.tokenize(cv_text))

        missing: List[str] = []
        matched = 0
        for token in job_tokens:
            if token in cv_tokens:
                matched += 1
            elif token not in missing:
                missing.append(token)

        score = round_half_up(100 * matched / len(job_tokens)) if job_tokens else 0
        return score, missing[:self.tables.max_missing_keywords]

    def _recruiter_doubts(self, overall_score: int, realism_score: float, quantified: bool) -> List[str]:
        doubts = self.tables.doubts
        result: List[str] = []
        if overall_score < doubts.low_score_threshold:
            result.extend(doubts.low_score)
        if not quantified:
            result.extend(doubts.no_quantification)
        if realism_score < doubts.low_realism_threshold:
            result.extend(doubts.low_realism)
        return result

    def filter_risk(self, overall_score: int) -> str:
        bands = self.tables.filter_risk
        if overall_score < bands.high_below:
            return 'high'
        if overall_score < bands.medium_below:
            return 'medium'
        return 'low'


def analyze_fallback(
    cv_text: str,
    job_description: Optional[str] = None,
    *,
    tables: Optional[ScoringTables] = None,
    rng: Optional[random.Random] = None,
) -> CVAnalysisResult:
    """Score a CV heuristically. Never raises on any string input."""
    return CVAnalysisScorer(tables=tables, rng=rng).score(cv_text, job_description)


def extract_company_name(job_description: str, stopwords: Optional[List[str]] = None) -> Optional[str]:
    """Guess the hiring company from common job-description phrasings."""
    if not job_description:
        return None
    if stopwords is None:
        stopwords = load_tables().cv_analysis.company_stopwords

    for pattern in COMPANY_PATTERNS:
        for match in pattern.finditer(job_description):
            company = match.group(1).strip()
            if company.split()[0] not in stopwords:
                return company
    return None
