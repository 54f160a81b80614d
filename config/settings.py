# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    APP_NAME: str = "Provision Compliance Engine"
    APP_VERSION: str = "2.0"

    # Anthropic Settings
    ANTHROPIC_API_URL: str = Field(
        default="https://api.anthropic.com/v1/messages",
        validation_alias="ANTHROPIC_API_URL",
    )
    ANTHROPIC_API_KEY: str | None = Field(
        default=None, validation_alias="ANTHROPIC_API_KEY"
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-5-haiku-latest", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = Field(
        default="2023-06-01", validation_alias="ANTHROPIC_VERSION"
    )

    # LLM behaviour
    LLM_ENABLED: bool = Field(default=True, validation_alias="LLM_ENABLED")
    LLM_TEMPERATURE: float = Field(default=0.0, validation_alias="LLM_TEMPERATURE")
    LLM_TIMEOUT_SECONDS: float = Field(
        default=45.0, validation_alias="LLM_TIMEOUT_SECONDS"
    )
    LLM_MAX_RETRIES: int = Field(default=3, validation_alias="LLM_MAX_RETRIES")

    # Embedding Engine
    EMBEDDING_MODEL_NAME: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBED_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias="EMBED_TIMEOUT_SECONDS"
    )

    # Provision index & retrieval
    PROVISION_NAMESPACE: str = Field(
        default="authoritative-provisions", validation_alias="PROVISION_NAMESPACE"
    )
    INDEX_TIMEOUT_SECONDS: float = Field(
        default=15.0, validation_alias="INDEX_TIMEOUT_SECONDS"
    )
    RETRIEVAL_TOP_K: int = Field(default=3, validation_alias="RETRIEVAL_TOP_K")
    RETRIEVAL_MIN_SCORE: float = Field(
        default=0.0, validation_alias="RETRIEVAL_MIN_SCORE"
    )

    # Batching
    BATCH_SIZE: int = Field(default=5, validation_alias="BATCH_SIZE")
    BATCH_DELAY_SECONDS: float = Field(
        default=2.0, validation_alias="BATCH_DELAY_SECONDS"
    )
    MAX_SENTENCES: int = Field(default=100, validation_alias="MAX_SENTENCES")

    # Segmentation
    SEGMENTER_LANGUAGE: str = Field(
        default="english", validation_alias="SEGMENTER_LANGUAGE"
    )
    THEMATIC_MAX_SECTIONS: int = Field(
        default=7, validation_alias="THEMATIC_MAX_SECTIONS"
    )

    # Logging knobs
    LOGGER_NAME: str = "provision-compliance"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    CLASSIFY_SYSTEM_PROMPT: str = (
        "You are a legal compliance analyst. Given a SENTENCE from an uploaded document and an "
        "AUTHORITATIVE PROVISION, decide whether the sentence complies with the provision.\n"
        "\n"
        "Decisions:\n"
        "- YES: the sentence aligns with or upholds the provision.\n"
        "- NO: the sentence contradicts or violates the provision.\n"
        "- PARTIAL: some alignment, but with gaps, ambiguities or conditions.\n"
        "\n"
        "Rules:\n"
        "- Judge ONLY from the provided sentence and provision text.\n"
        "- Assign a confidence between 0 and 100.\n"
        '- Return JSON ONLY: {"decision":"YES|NO|PARTIAL","confidence":0-100}\n'
        "- No code fences.\n"
    )

    RATIONALE_SYSTEM_PROMPT: str = (
        "You are a legal expert providing clear, factual explanations. The compliance decision "
        "has already been made; explain it, never revise it.\n"
        "- Write 2-3 sentences.\n"
        "- Identify the key legal principle of the provision, show how the sentence relates to it, "
        "and justify the given decision.\n"
        "- Cite the provision by its article reference.\n"
        "- Plain text only. No JSON, no code fences.\n"
    )

    THEMATIC_SYSTEM_PROMPT: str = (
        "You are a legal document architect. Divide the DOCUMENT into distinct thematic "
        "sections for constitutional analysis, focusing on passages that carry legal "
        "obligations, procedural directives or fundamental-rights implications.\n"
        "- `content` must be copied VERBATIM from the document, one contiguous passage, "
        "in document order. Do not paraphrase or join passages.\n"
        "- `title` is a short heading for the section.\n"
        '- Return JSON ONLY: {"sections":[{"title":"...","content":"..."}]}\n'
        "- No code fences.\n"
    )

    SUMMARY_SYSTEM_PROMPT: str = (
        "You are a legal summarizer preparing the opening section of a compliance report.\n"
        "- executiveSummary: 3-4 sentences outlining the document's directives, procedural "
        "background and final instructions, then one sentence on the compliance statistics.\n"
        "- keyFindings: 3-7 short bullet strings grounded in the statistics provided.\n"
        '- Return JSON ONLY: {"executiveSummary":"...","keyFindings":["...","..."]}\n'
        "- No code fences.\n"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
