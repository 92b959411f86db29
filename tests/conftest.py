import pytest
import random
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


class FixedRandom:
    """Stand-in RNG whose random() always returns the same value."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_rng():
    return FixedRandom


@pytest.fixture
def seeded_rng():
    return random.Random(42)


@pytest.fixture
def strong_cv_text():
    """A CV long enough to clear every length threshold, with contact details."""
    return """
    Jane Doe - Senior Backend Engineer
    jane.doe@example.com | +44 7700 900123

    Experience
    Acme Payments (2019 - present)
    - Led a team of 6 engineers building payment microservices in Python and Go.
    - Designed an event pipeline on AWS with Docker and Kubernetes serving 2 million users.
    - Improved API latency by 45% and cut infrastructure cost by 30%.
    - Delivered a fraud detection service that reduced chargebacks by 20%.

    Globex (2016 - 2019)
    - Built internal tooling in Python and SQL used by 300 people across the company.
    - Implemented CI pipelines that shortened release cycles from weeks to days.

    Skills: Python, Go, SQL, AWS, Docker, Kubernetes, PostgreSQL, Redis
    """


@pytest.fixture
def sample_blocks():
    """A complete structured CV as the editor would send it (camelCase keys)."""
    return [
        {
            "id": "b1", "blockType": "header", "position": 0, "isEnabled": True,
            "content": {
                "fullName": "Jane Doe",
                "professionalTitle": "Senior Backend Engineer",
                "email": "jane.doe@example.com",
                "phone": "+44 7700 900123",
            },
        },
        {
            "id": "b2", "blockType": "summary", "position": 1, "isEnabled": True,
            "content": {
                "text": "Backend engineer with 8 years of experience building scalable APIs. "
                        "Led platform teams and improved reliability for payment systems.",
            },
        },
        {
            "id": "b3", "blockType": "skills", "position": 2, "isEnabled": True,
            "content": {"skills": "Python, Go, SQL, AWS, Docker, Kubernetes, React"},
        },
        {
            "id": "b4", "blockType": "experience", "position": 3, "isEnabled": True,
            "content": {"items": [
                {
                    "company": "Acme Payments", "position": "Senior Engineer", "startDate": "2019",
                    "current": True,
                    "achievements": "- Led migration of 12 services to AWS\n"
                                    "- Reduced API latency by 45% with a cache layer\n"
                                    "- Developed a Python analytics pipeline for 2000 clients",
                },
                {
                    "company": "Globex", "position": "Engineer", "startDate": "2016", "endDate": "2019",
                    "description": "Implemented database performance tuning and built CI/CD on docker.",
                },
            ]},
        },
        {
            "id": "b5", "blockType": "education", "position": 4, "isEnabled": True,
            "content": {"items": [{"institution": "University of Leeds", "degree": "BSc", "field": "Computer Science"}]},
        },
        {
            "id": "b6", "blockType": "projects", "position": 5, "isEnabled": True,
            "content": {"items": [
                {"name": "queue-lab", "description": "Designed a scalable job queue with microservices.",
                 "technologies": ["Python", "Redis"]},
            ]},
        },
    ]
