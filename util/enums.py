# util/enums.py
from enum import Enum


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Decision(str, Enum):
    YES = "YES"
    NO = "NO"
    PARTIAL = "PARTIAL"


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class OverallCompliance(str, Enum):
    FULLY_COMPLIANT = "FULLY_COMPLIANT"
    PARTIALLY_COMPLIANT = "PARTIALLY_COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"
    # No mappings were produced, so there is nothing to judge.
    NO_DATA = "NO_DATA"


class Priority(str, Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Granularity(str, Enum):
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"
    THEMATIC = "thematic"


class StrategySource(str, Enum):
    LLM = "llm"
    HEURISTIC = "heuristic"
    TEMPLATE = "template"
