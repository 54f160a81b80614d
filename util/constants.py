# util/constants.py
from typing import Final

# Segmentation
MIN_SENTENCE_CHARS: Final[int] = 10
MIN_PARAGRAPH_CHARS: Final[int] = 20
# Page numbers are an estimate: offset // CHARS_PER_PAGE + 1, not real pagination.
CHARS_PER_PAGE: Final[int] = 3000
PAGE_ESTIMATE_DISCLAIMER: Final[str] = (
    f"Page numbers are estimated from character offsets ({CHARS_PER_PAGE} characters "
    "per page) and do not reflect the document's real pagination."
)


class FallbackThresholds:
    YES = 0.85
    PARTIAL = 0.70


class ConfidenceBuckets:
    HIGH = 85
    MEDIUM = 70


class SeverityThresholds:
    # Lower confidence in a NO finding means higher risk.
    HIGH_BELOW = 60
    MEDIUM_BELOW = 80


NON_COMPLIANT_RATIO: Final[float] = 0.5
SUMMARY_DOC_CHARS: Final[int] = 5000
PROVISION_TEXT_CHARS: Final[int] = 500
PROVENANCE_LOG_EXAMPLES: Final[int] = 3

# Thematic chunking
THEMATIC_INPUT_CHARS: Final[int] = 15000
