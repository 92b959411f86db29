import regex as re
from typing import Dict, Iterable, List, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

WORD_TOKEN = re.compile(r'\b\w{4,}\b')


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (``round`` would bank it)."""
    return int(value + 0.5)


def band_points(value: float, bands: Sequence[Tuple[int, int]], strict: bool = False) -> int:
    """Return the points of the first band whose threshold ``value`` reaches."""
    for threshold, points in bands:
        if (value > threshold) if strict else (value >= threshold):
            return points
    return 0


def cumulative_points(value: float, bands: Sequence[Tuple[int, int]], strict: bool = False) -> int:
    """Sum the points of every band whose threshold ``value`` reaches."""
    return sum(
        points for threshold, points in bands
        if ((value > threshold) if strict else (value >= threshold))
    )


class PatternMatcher:
    """Compiled, case-insensitive signal patterns plus term counting helpers."""

    def __init__(self, patterns: Dict[str, str] = None):
        self.patterns = patterns or {}
        self.compile_patterns()

    def compile_patterns(self):
        """Compile regex patterns from the tables for better performance."""
        self.compiled_patterns = {}
        for name, pattern in self.patterns.items():
            try:
                self.compiled_patterns[name] = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                logger.error(f"Failed to compile pattern '{name}': {str(e)}")
                raise ValueError(f"Invalid pattern for {name}: {pattern}") from e

    def has(self, name: str, text: str) -> bool:
        pattern = self.compiled_patterns.get(name)
        if pattern is None:
            logger.warning(f"Unknown signal pattern: {name}")
            return False
        return pattern.search(text or "") is not None

    @staticmethod
    def compile_alternation(terms: Iterable[str]) -> 're.Pattern':
        """Join regex fragments into one case-insensitive alternation."""
        combined = '|'.join(f'(?:{term})' for term in terms if term.strip())
        return re.compile(combined or r'(?!)', re.IGNORECASE)

    @staticmethod
    def count_terms(terms: Iterable[str], *texts: str) -> int:
        """Count distinct terms that appear as a substring of any of ``texts``."""
        lowered = [t.lower() for t in texts if t]
        return sum(1 for term in terms if any(term.lower() in t for t in lowered))

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """Lowercased word tokens of four or more characters, in text order."""
        return WORD_TOKEN.findall((text or "").lower())
