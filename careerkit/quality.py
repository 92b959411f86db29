import regex as re
from typing import Dict, List, Optional, Sequence
import logging

from .matcher import PatternMatcher, band_points, clamp, cumulative_points, round_half_up
from .schemas import (
    CVBlock, CVQualityScores, EducationContent, ExperienceContent, HeaderContent,
    ProjectsContent, SkillsContent, SummaryContent,
)
from .tables import ScoringTables, load_tables

logger = logging.getLogger(__name__)

SENTENCE_SPLIT = re.compile(r'[.!?]')
SKILL_SPLIT = re.compile(r'[,;]')

SCORED_BLOCK_TYPES = ('header', 'summary', 'skills', 'experience', 'education', 'projects')


class CVQualityScorer:
    """
    Scores a structured CV (a list of typed blocks) on eight axes.

    Only enabled blocks count, and for each block type only the first enabled
    block is consulted; later duplicates (a second experience block, say) are
    ignored. Suggestions are kept in the order the checks run and truncated,
    not ranked by severity.
    """

    def __init__(self, tables: Optional[ScoringTables] = None):
        self.tables = (tables or load_tables()).cv_quality
        self.quantified = re.compile(self.tables.quantified_pattern, re.IGNORECASE)
        self.bullets = re.compile('[' + re.escape(self.tables.bullet_chars) + ']')

    @staticmethod
    def first_blocks(blocks: Sequence[CVBlock]) -> Dict[str, object]:
        """Map each scored block type to the content of its first enabled block."""
        found: Dict[str, object] = {}
        for block in blocks:
            if not block.is_enabled or block.block_type not in SCORED_BLOCK_TYPES:
                continue
            if block.block_type in found:
                logger.debug(f"Ignoring duplicate {block.block_type} block {block.id!r}")
                continue
            found[block.block_type] = block.content
        return found

    def calculate(self, blocks: Sequence[CVBlock]) -> CVQualityScores:
        suggestions: List[str] = []
        enabled = [b for b in blocks if b.is_enabled]
        found = self.first_blocks(enabled)

        header: Optional[HeaderContent] = found.get('header')
        summary: Optional[SummaryContent] = found.get('summary')
        skills: Optional[SkillsContent] = found.get('skills')
        experience: Optional[ExperienceContent] = found.get('experience')
        education: Optional[EducationContent] = found.get('education')
        projects: Optional[ProjectsContent] = found.get('projects')

        summary_text = summary.text if summary else ""
        skills_text = skills.skills_text if skills else ""
        experience_items = experience.items if experience else []
        education_items = education.items if education else []
        project_items = projects.items if projects else []

        completeness = self._completeness(
            header, summary_text, skills_text, experience_items,
            education_items, project_items, suggestions,
        )

        corpus = ' '.join(
            [summary_text]
            + [item.details for item in experience_items]
            + [item.description for item in project_items]
        )
        action_verb_count = PatternMatcher.count_terms(self.tables.action_verbs, corpus)

        impact = self._impact(corpus, action_verb_count, suggestions)
        keywords = self._keywords(corpus, skills_text, suggestions)
        formatting = self._formatting(enabled, header, summary, skills, experience_items)
        readability = self._readability(summary_text)
        ats = self._ats(header, skills_text, experience_items, corpus, suggestions)
        language = self._language(corpus, action_verb_count)

        axis_scores = {
            'completeness': completeness,
            'impact': impact,
            'keywords': keywords,
            'formatting': formatting,
            'readability': readability,
            'ats': ats,
            'language': language,
        }
        quality = round_half_up(sum(
            axis_scores[axis] * weight for axis, weight in self.tables.weights.items()
        ))

        return CVQualityScores(
            quality=int(clamp(quality)),
            suggestions=suggestions[:self.tables.max_suggestions],
            **axis_scores,
        )

    def _completeness(self, header, summary_text, skills_text, experience_items,
                      education_items, project_items, suggestions) -> int:
        table = self.tables.completeness
        text = self.tables.suggestions
        raw = 0

        full_name = header.full_name.strip() if header else ""
        if len(full_name) > 2:
            raw += table.name
        else:
            suggestions.append(text['name'])

        title = header.professional_title.strip() if header else ""
        if len(title) > 2:
            raw += table.title
        else:
            suggestions.append(text['title'])

        if header and header.email and '@' in header.email:
            raw += table.email
        else:
            suggestions.append(text['email'])

        if header and header.phone and len(header.phone) > 5:
            raw += table.phone
        else:
            suggestions.append(text['phone'])

        summary_points = cumulative_points(len(summary_text), table.summary_bands, strict=True)
        if summary_points:
            raw += summary_points
            if len(summary_text) > table.summary_bands[-1][0]:
                suggestions.append(text['summary_long'])
        else:
            suggestions.append(text['summary_missing'])

        skill_count = len([s for s in SKILL_SPLIT.split(skills_text) if s.strip()])
        skill_points = cumulative_points(skill_count, table.skills_bands)
        if skill_points:
            raw += skill_points
        else:
            suggestions.append(text['skills'])

        if experience_items:
            raw += cumulative_points(len(experience_items), table.experience_bands)
            if any(not item.details.strip() for item in experience_items):
                suggestions.append(text['experience_details'])
        else:
            suggestions.append(text['experience_missing'])

        if education_items:
            raw += cumulative_points(len(education_items), table.education_bands)
        else:
            suggestions.append(text['education'])

        if project_items:
            raw += cumulative_points(len(project_items), table.project_bands)
        else:
            suggestions.append(text['projects'])

        return int(min(100, round_half_up(raw / table.max_raw * 100)))

    def _impact(self, corpus: str, action_verb_count: int, suggestions: List[str]) -> int:
        text = self.tables.suggestions
        score = 0

        verb_points = band_points(action_verb_count, self.tables.impact_bands)
        if verb_points:
            score += verb_points
        else:
            suggestions.append(text['action_verbs'])

        quantified_count = sum(1 for _ in self.quantified.finditer(corpus))
        quantified_points = band_points(quantified_count, self.tables.impact_bands)
        if quantified_points:
            score += quantified_points
        else:
            suggestions.append(text['quantified'])

        bullet_count = len(self.bullets.findall(corpus))
        score += min(self.tables.bullet_points_max, self.tables.bullet_points_each * bullet_count)

        return int(clamp(score))

    def _keywords(self, corpus: str, skills_text: str, suggestions: List[str]) -> int:
        count = PatternMatcher.count_terms(self.tables.technical_keywords, corpus, skills_text)
        score = band_points(count, self.tables.keyword_bands)
        if not score:
            score = max(self.tables.keyword_floor, count * self.tables.keyword_each)
        if count < self.tables.keyword_suggestion_below:
            suggestions.append(self.tables.suggestions['keywords'])
        return int(clamp(score))

    def _formatting(self, enabled, header, summary, skills, experience_items) -> int:
        table = self.tables.formatting
        score = table.base + cumulative_points(len(enabled), table.blocks_bands)
        if None not in (header, summary, skills) and experience_items:
            score += table.essentials_bonus
        return int(clamp(score))

    def _readability(self, summary_text: str) -> int:
        table = self.tables.readability
        score = table.base

        sentences = [s for s in SENTENCE_SPLIT.split(summary_text) if s.strip()]
        if sentences:
            avg_sentence_length = len(summary_text) / len(sentences)
            if 0 < avg_sentence_length < table.max_avg_sentence:
                score += table.sentence_bonus

        if table.summary_min < len(summary_text) < table.summary_max:
            score += table.summary_bonus
        return int(clamp(score))

    def _ats(self, header, skills_text, experience_items, corpus, suggestions) -> int:
        table = self.tables.ats
        score = table.base
        if header and header.email:
            score += table.email
        if header and header.phone:
            score += table.phone
        if len(skills_text) > table.skills_min_chars:
            score += table.skills
        if experience_items:
            score += table.experience

        if any(char in corpus for char in self.tables.ats_unfriendly_chars):
            score -= table.special_chars_penalty
            suggestions.append(self.tables.suggestions['special_chars'])
        return int(clamp(score))

    def _language(self, corpus: str, action_verb_count: int) -> int:
        table = self.tables.language
        score = table.base + cumulative_points(len(corpus), table.length_bands, strict=True)
        if action_verb_count >= table.action_verbs_min:
            score += table.action_verbs_bonus
        return int(clamp(score))


def calculate_cv_scores(blocks: Sequence[CVBlock], *, tables: Optional[ScoringTables] = None) -> CVQualityScores:
    """Score a list of CV blocks. Never raises for validated blocks."""
    return CVQualityScorer(tables=tables).calculate(blocks)
