"""
Creative coach prompts.

Two backends:
  - OpenAI chat completions (daily prompt, feedback, chat, ideas, quest text)
  - Hugging Face Pegasus summarisation over plain HTTP (mirror, expand, summarize)

Every helper here either returns text or raises UpstreamServiceError; the
routes turn that into the apologetic fallback so the client never sees a
service failure.
"""
import json
import logging
import re
from typing import Optional

import openai
import requests

from mindmuse.ai.openai_client import get_client, set_last_error
from mindmuse.core.config import HUGGINGFACE_API_KEY, OPENAI_MODEL
from mindmuse.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "I apologize, but I couldn't generate a response right now. Please try again."

PEGASUS_API_URL = "https://router.huggingface.co/hf-inference/models/google/pegasus-large"
HF_TIMEOUT = 15

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)
_JSON_ARRAY_RE = re.compile(r"\[\s*{.*?}\s*\]", re.DOTALL)

DAILY_PROMPT_SYSTEM = (
    "You are a creative prompt generator for writers. Generate an inspiring and "
    "thought-provoking writing prompt that encourages self-reflection and creativity."
)
FEEDBACK_SYSTEM = """You are a writing coach. Your feedback must ONLY contain the three sections below.
Keep it concise, warm and specific. No markdown, no thinking out loud, at most 1-2 emojis.

FORMAT:
Strengths:
- [2-3 specific things done well]

Areas for Improvement:
- [2-3 specific, actionable suggestions]

Writing Tips:
- [1-2 actionable tips]"""
CHAT_SYSTEM = (
    "You are MuseBot, a creative and supportive assistant focused on mindfulness, "
    "creativity, and personal growth. Be encouraging, insightful, and slightly playful."
)
MIRROR_SYSTEM = (
    "You are a mindfulness and creativity coach. Analyze the user's journal entry and "
    "provide insights about their current state, mood, and creative potential. Offer "
    "gentle suggestions for growth."
)
IDEA_SYSTEM = (
    "You are a creative idea enhancer. Analyze the given idea and provide: potential "
    "variations or twists, related concepts to explore, and practical next steps. Keep "
    "suggestions concise and actionable."
)

# Pegasus generation lengths per use
SUMMARY_LENGTHS = {
    "mirror": (50, 200),
    "expand": (100, 250),
    "summarize": (50, 150),
}


def strip_thinking(text: Optional[str]) -> str:
    """Drop <think>...</think> blocks some models emit before the answer."""
    return _THINK_RE.sub("", text or "").strip()


def extract_json_array(text: Optional[str]) -> list:
    """Pull the first JSON array of objects out of free text."""
    match = _JSON_ARRAY_RE.search(text or "")
    if not match:
        raise UpstreamServiceError("No JSON array found in generated text")
    try:
        data = json.loads(match.group(0))
    except ValueError as exc:
        raise UpstreamServiceError("Generated JSON could not be parsed") from exc
    if not isinstance(data, list):
        raise UpstreamServiceError("Generated JSON is not a list")
    return data


# ---------------------------------------------------------------------------
# OPENAI
# ---------------------------------------------------------------------------

def complete(messages: list[dict], temperature: float = 0.7, max_tokens: int = 500) -> str:
    client = get_client()
    if client is None:
        raise UpstreamServiceError("OPENAI_API_KEY is not configured")

    try:
        response = client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except openai.AuthenticationError as exc:
        set_last_error(f"authentication: {exc}")
        logger.error("[AI] authentication failed: %s", exc)
        raise UpstreamServiceError("Generation service rejected the API key") from exc
    except openai.OpenAIError as exc:
        set_last_error(repr(exc))
        logger.warning("[AI] completion failed: %r", exc)
        raise UpstreamServiceError("Generation service request failed") from exc

    text = strip_thinking(response.choices[0].message.content if response.choices else "")
    if not text:
        raise UpstreamServiceError("Generation service returned an empty answer")
    logger.info("[AI] completion received: %s...", text[:80])
    return text


def daily_prompt() -> str:
    return complete([
        {"role": "system", "content": DAILY_PROMPT_SYSTEM},
        {"role": "user", "content": "Give me a creative writing prompt about self-discovery and personal growth."},
    ], temperature=0.9)


def writing_feedback(content: str) -> str:
    return complete([
        {"role": "system", "content": FEEDBACK_SYSTEM},
        {"role": "user", "content": f"Provide feedback on this writing: {content}"},
    ])


def chat(content: str, context: Optional[list[dict]] = None) -> str:
    history = [
        {"role": m["role"], "content": str(m.get("content", ""))}
        for m in (context or [])
        if isinstance(m, dict) and m.get("role") in ("user", "assistant")
    ]
    return complete([{"role": "system", "content": CHAT_SYSTEM}, *history,
                     {"role": "user", "content": content}])


def mirror_reflection(content: str) -> str:
    return complete([
        {"role": "system", "content": MIRROR_SYSTEM},
        {"role": "user", "content": content},
    ])


def enhance_idea(idea: str) -> str:
    return complete([
        {"role": "system", "content": IDEA_SYSTEM},
        {"role": "user", "content": f"Enhance this idea: {idea}"},
    ])


# ---------------------------------------------------------------------------
# HUGGING FACE
# ---------------------------------------------------------------------------

def summarize(text: str, kind: str = "summarize") -> str:
    if not HUGGINGFACE_API_KEY:
        raise UpstreamServiceError("HUGGINGFACE_API_KEY is not configured")
    min_length, max_length = SUMMARY_LENGTHS.get(kind, SUMMARY_LENGTHS["summarize"])

    try:
        response = requests.post(
            PEGASUS_API_URL,
            headers={"Authorization": f"Bearer {HUGGINGFACE_API_KEY}"},
            json={
                "inputs": text,
                "parameters": {
                    "min_length": min_length,
                    "max_length": max_length,
                    "temperature": 0.8,
                    "top_p": 0.95,
                    "do_sample": True,
                },
            },
            timeout=HF_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("[AI] pegasus %s failed: %r", kind, exc)
        raise UpstreamServiceError("Summarisation service request failed") from exc

    if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("summary_text"):
        return data[0]["summary_text"].strip()
    logger.warning("[AI] pegasus %s unexpected response: %.200r", kind, data)
    raise UpstreamServiceError("Summarisation service returned an unexpected response")
