# util/errors.py


class AppError(Exception):
    # Flow: every pipeline failure is an AppError; only AggregationError is meant to escape.
    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class SegmentationError(AppError):
    """A segment could not be aligned with the source text; the segment is dropped."""


class RetrievalError(AppError):
    """Embedding or provision index unavailable; the sentence gets no mapping."""


class ClassificationError(AppError):
    """Primary classifier failed or returned invalid output; heuristic takes over."""


class RationaleError(AppError):
    """Explanation could not be generated; the templated rationale is used."""


class SummaryError(AppError):
    """Executive summary call failed; the templated summary is used."""


class AggregationError(AppError):
    """Report could not be assembled. Propagates to the caller."""


class ChunkingError(AppError):
    """Thematic sections unavailable or not found in the text; paragraphs are used."""
