from typing import Any, Dict, List, Optional
import json
import re
import logging

from pydantic import ValidationError

from .schemas import AnswerEvaluation, CVAnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a senior technical recruiter and CV expert with 15+ years of experience. "
    "You provide brutally honest, actionable feedback on CVs. "
    "You must respond ONLY with valid JSON - no markdown, no explanation, just the JSON object."
)

EVALUATION_SYSTEM_PROMPT = (
    "You are a senior software engineer evaluating interview answers. "
    "Be fair but thorough. Output only valid JSON."
)

SCORE_FIELDS = ('overallScore', 'relevanceScore', 'depthScore', 'clarityScore')


class PromptHandler:
    @classmethod
    def create_analysis_prompt(
        cls,
        cv_text: str,
        job_description: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """Create the CV analysis messages, asking for the CVAnalysisResult JSON shape."""
        prompt = f"Analyze this CV and provide detailed feedback in JSON format:\n\nCV CONTENT:\n{cv_text}\n"
        if job_description:
            prompt += f"\nJOB DESCRIPTION TO MATCH AGAINST:\n{job_description}\n"
        if company_name:
            prompt += (
                f"\nTARGET COMPANY: {company_name}\n"
                "Consider this company's culture, hiring standards, and what they look for in candidates.\n"
            )

        shape = {
            "overallScore": "<number 0-100>",
            "structuralScore": "<number 0-100>",
            "technicalScore": "<number 0-100>",
            "atsScore": "<number 0-100>",
            "realismScore": "<number 0-100>",
            "structuralIssues": ["<issue>"],
            "technicalIssues": ["<issue>"],
            "atsIssues": ["<issue>"],
            "realismFlags": ["<concern>"],
            "strengths": ["<strength>"],
            "improvements": ["<improvement>"],
            "recruiterDoubts": ["<doubt>"],
            "jobMatchScore": "<number 0-100>" if job_description else None,
            "missingKeywords": ["<keyword>"] if job_description else [],
            "filterRisk": "<low | medium | high>",
        }
        if company_name:
            shape["companyFit"] = f"<assessment of fit for {company_name}>"

        prompt += (
            "\nRespond with this exact JSON structure (no markdown code blocks, just raw JSON):\n"
            f"{json.dumps(shape, indent=2)}\n\nBe brutal but constructive."
        )
        return [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    @classmethod
    def create_evaluation_prompt(cls, question: str, answer: str, level: str) -> List[Dict[str, str]]:
        """Create the answer evaluation messages, asking for the AnswerEvaluation JSON shape."""
        prompt = f"""You are a STRICT senior software engineer evaluating an interview answer.
Question: {question}
Candidate Answer: {answer}
Expected Level: {level}

Short or vague answers should score BELOW 40. Only give 70+ if the answer demonstrates real knowledge.

Provide evaluation in this exact JSON format:
{{
  "overallScore": <number 0-100>,
  "relevanceScore": <number 0-100>,
  "depthScore": <number 0-100>,
  "clarityScore": <number 0-100>,
  "feedback": ["positive point"],
  "suggestions": ["improvement"],
  "rating": "Excellent" | "Good" | "Satisfactory" | "Needs Improvement",
  "followUpQuestion": "<optional follow-up question or null>"
}}

Output ONLY valid JSON."""
        return [
            {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    @staticmethod
    def clean_json_string(json_str: str) -> str:
        """Strip markdown fences and trailing commas from a model's JSON reply."""
        if '```' in json_str:
            matches = re.findall(r'```(?:json)?(.*?)```', json_str, re.DOTALL)
            if matches:
                json_str = matches[0]
            else:
                json_str = json_str.replace('```json', '').replace('```', '')

        json_str = json_str.strip()
        json_str = re.sub(r',(\s*[}\]])', r'\1', json_str)
        return json_str

    @classmethod
    def _load_json(cls, content: str) -> Dict[str, Any]:
        try:
            data = json.loads(cls.clean_json_string(content))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {str(e)}")
            raise ValueError("Failed to parse AI response") from e
        if not isinstance(data, dict):
            raise ValueError("AI response is not a JSON object")
        return data

    @classmethod
    def parse_analysis(cls, content: str) -> CVAnalysisResult:
        """Parse and validate an AI CV analysis. Raises ValueError if unusable."""
        data = cls._load_json(content)
        try:
            return CVAnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.error(f"Failed to validate analysis response: {str(e)}")
            raise ValueError("AI analysis did not match the expected schema") from e

    @classmethod
    def parse_evaluation(cls, content: str) -> AnswerEvaluation:
        """Parse and validate an AI answer evaluation. Raises ValueError if unusable."""
        data = cls._load_json(content)

        # Models sometimes return 0 for non-answers; keep the floor the heuristic uses
        for field in SCORE_FIELDS:
            if isinstance(data.get(field), (int, float)):
                data[field] = int(max(0, min(100, round(data[field]))))
        if isinstance(data.get('overallScore'), int):
            data['overallScore'] = max(5, data['overallScore'])

        try:
            return AnswerEvaluation.model_validate(data)
        except ValidationError as e:
            logger.error(f"Failed to validate evaluation response: {str(e)}")
            raise ValueError("AI evaluation did not match the expected schema") from e
