"""Tests for rationale generation: it explains a verdict and never changes it."""

import httpx

from conftest import ARTICLE_10, ARTICLE_19, anthropic_reply, make_candidate, make_llm, make_sentence
from core.entities import Classification
from core.rationale import LLMRationale, TemplateRationale, template_rationale
from util.enums import Decision, StrategySource

SENTENCE = make_sentence(2, "Officials may detain any person indefinitely without charge.")
MATCH = make_candidate(ARTICLE_10, 0.62)
VERDICT = Classification(decision=Decision.NO, confidence=62, source=StrategySource.HEURISTIC)


def test_template_wording_per_decision():
    assert template_rationale(MATCH, Decision.YES) == (
        "The document text shows alignment with Article 10, Part II."
    )
    assert template_rationale(MATCH, Decision.NO) == (
        "The document text shows contradiction with Article 10, Part II."
    )
    assert template_rationale(make_candidate(ARTICLE_19, 0.7), Decision.PARTIAL) == (
        "The document text shows partial alignment with Article 19, Part II."
    )


async def test_template_strategy():
    rationale = await TemplateRationale().explain(SENTENCE, MATCH, VERDICT)

    assert rationale.source == StrategySource.TEMPLATE
    assert "contradiction" in rationale.text


async def test_llm_rationale_text_is_used_verbatim():
    text = "Article 10 requires grounds of arrest to be given. The clause permits detention without them."
    client, transport = make_llm(lambda payload: anthropic_reply(f"  {text}\n"))

    rationale = await LLMRationale(client).explain(SENTENCE, MATCH, VERDICT)

    assert rationale.text == text
    assert rationale.source == StrategySource.LLM
    prompt = transport.payloads[0]["messages"][0]["content"]
    assert "DECISION (fixed): NO" in prompt


async def test_llm_rationale_cannot_override_decision():
    # A reply that argues for a different outcome is still only a rationale
    client, _ = make_llm(lambda payload: anthropic_reply('{"decision": "YES"}'))

    rationale = await LLMRationale(client).explain(SENTENCE, MATCH, VERDICT)

    assert rationale.text == '{"decision": "YES"}'
    assert VERDICT.decision == Decision.NO


async def test_empty_reply_uses_template():
    client, _ = make_llm(lambda payload: anthropic_reply("   "))

    rationale = await LLMRationale(client).explain(SENTENCE, MATCH, VERDICT)

    assert rationale.source == StrategySource.TEMPLATE
    assert rationale.text == template_rationale(MATCH, Decision.NO)


async def test_transport_failure_uses_template():
    def handler(payload):
        raise httpx.ConnectError("connection refused")

    client, _ = make_llm(handler)

    rationale = await LLMRationale(client).explain(SENTENCE, MATCH, VERDICT)

    assert rationale.source == StrategySource.TEMPLATE
