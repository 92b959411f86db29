from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model that reads snake_case or camelCase and writes camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode='json')


# --- CV blocks ---------------------------------------------------------------

class HeaderContent(WireModel):
    full_name: str = ""
    professional_title: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class SummaryContent(WireModel):
    text: str = ""


class SkillCategory(WireModel):
    category: str = ""
    skills: List[str] = []


class SkillsContent(WireModel):
    skills: str = ""
    categories: List[SkillCategory] = []

    @property
    def skills_text(self) -> str:
        parts = [self.skills] if self.skills.strip() else []
        for category in self.categories:
            parts.extend(skill for skill in category.skills if skill.strip())
        return ", ".join(parts)


class ExperienceItem(WireModel):
    company: str = ""
    position: str = ""
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None
    current: bool = False
    achievements: str = ""
    description: str = ""
    bullets: List[str] = []

    @property
    def details(self) -> str:
        return self.achievements or self.description or "\n".join(self.bullets)


class ExperienceContent(WireModel):
    items: List[ExperienceItem] = []


class EducationItem(WireModel):
    institution: str = ""
    degree: str = ""
    field: str = ""
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None
    gpa: Optional[str] = None
    honors: List[str] = []


class EducationContent(WireModel):
    items: List[EducationItem] = []


class ProjectItem(WireModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = []
    url: Optional[str] = None


class ProjectsContent(WireModel):
    items: List[ProjectItem] = []


class CustomItem(WireModel):
    title: str = ""
    description: str = ""


class CustomContent(WireModel):
    text: Optional[str] = None
    items: List[CustomItem] = []


class BaseBlock(WireModel):
    id: str = ""
    position: int = 0
    is_enabled: bool = True
    custom_title: Optional[str] = None


class HeaderBlock(BaseBlock):
    block_type: Literal['header'] = 'header'
    content: HeaderContent = Field(default_factory=HeaderContent)


class SummaryBlock(BaseBlock):
    block_type: Literal['summary'] = 'summary'
    content: SummaryContent = Field(default_factory=SummaryContent)


class SkillsBlock(BaseBlock):
    block_type: Literal['skills'] = 'skills'
    content: SkillsContent = Field(default_factory=SkillsContent)


class ExperienceBlock(BaseBlock):
    block_type: Literal['experience'] = 'experience'
    content: ExperienceContent = Field(default_factory=ExperienceContent)


class EducationBlock(BaseBlock):
    block_type: Literal['education'] = 'education'
    content: EducationContent = Field(default_factory=EducationContent)


class ProjectsBlock(BaseBlock):
    block_type: Literal['projects'] = 'projects'
    content: ProjectsContent = Field(default_factory=ProjectsContent)


class CustomBlock(BaseBlock):
    block_type: Literal['custom'] = 'custom'
    content: CustomContent = Field(default_factory=CustomContent)


CVBlock = Annotated[
    Union[HeaderBlock, SummaryBlock, SkillsBlock, ExperienceBlock,
          EducationBlock, ProjectsBlock, CustomBlock],
    Field(discriminator='block_type'),
]

_block_adapter = TypeAdapter(CVBlock)
_blocks_adapter = TypeAdapter(List[CVBlock])


def parse_block(data: Dict[str, Any]) -> CVBlock:
    return _block_adapter.validate_python(data)


def parse_blocks(data: List[Dict[str, Any]]) -> List[CVBlock]:
    """Validate raw block dicts (camelCase or snake_case keys) into typed blocks."""
    return _blocks_adapter.validate_python(data)


# --- Scorer results ----------------------------------------------------------

Score = Annotated[int, Field(ge=0, le=100)]


class CVAnalysisResult(WireModel):
    overall_score: Score
    structural_score: Score
    technical_score: Score
    ats_score: Score
    realism_score: Score
    structural_issues: List[str] = []
    technical_issues: List[str] = []
    ats_issues: List[str] = []
    realism_flags: List[str] = []
    strengths: List[str] = []
    improvements: List[str] = []
    recruiter_doubts: List[str] = []
    job_match_score: Optional[Score] = None
    missing_keywords: List[str] = []
    filter_risk: Literal['low', 'medium', 'high']
    company_fit: Optional[str] = None


class CVQualityScores(WireModel):
    quality: Score
    readability: Score
    ats: Score
    language: Score
    completeness: Score
    impact: Score
    keywords: Score
    formatting: Score
    suggestions: List[str] = Field(default_factory=list, max_length=5)


class AnswerEvaluation(WireModel):
    overall_score: int = Field(..., ge=5, le=100)
    relevance_score: Score
    depth_score: Score
    clarity_score: Score
    feedback: List[str] = []
    suggestions: List[str] = []
    follow_up_question: Optional[str] = None
    rating: Literal['Excellent', 'Good', 'Satisfactory', 'Needs Improvement']


class AnswerRecord(WireModel):
    question: str
    category: str = ""
    answer_text: str = ""


# --- Interview sessions ------------------------------------------------------

class InterviewQuestion(WireModel):
    id: int
    question: str
    category: str


class InterviewPlan(WireModel):
    level: str
    focus_areas: List[str]
    total_questions: int
    questions: List[InterviewQuestion]
    started_at: datetime


class ScoredAnswer(WireModel):
    category: str
    score: float = Field(..., ge=0, le=100)


class CategoryScore(WireModel):
    category: str
    avg_score: int
    questions_count: int


class InterviewSummary(WireModel):
    overall_score: int
    category_scores: List[CategoryScore]
    strengths: List[str]
    weaknesses: List[str]
    readiness_level: str
    study_recommendations: List[str]
    total_questions: int
    completed_at: datetime
    recommendation: str


# --- Service envelopes -------------------------------------------------------

class CVAnalysisResponse(WireModel):
    success: bool = True
    analysis: CVAnalysisResult
    tokens_used: int = 0
    latency_ms: int = 0
    model: str
    source: Literal['ai', 'heuristic']
    extracted_text_length: int
    detected_company: Optional[str] = None


class EvaluationResponse(WireModel):
    success: bool = True
    question_id: Optional[Union[int, str]] = None
    evaluation: AnswerEvaluation
    tokens_used: int = 0
    latency_ms: int = 0
    model: str
    source: Literal['ai', 'heuristic']
