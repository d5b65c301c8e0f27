"""
AI-backed Pokemon suggestions.

Providers are tried in order; a rate-limited or out-of-quota provider hands
over to the next one. Any other provider failure ends the attempt.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import ValidationError

from .results import ActionResult, ErrorKind, fail, ok
from .schemas import Suggestion

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


class RateLimited(Exception):
    pass


class SuggestionProvider(ABC):
    name = "provider"

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's text; raise RateLimited on 429/quota errors."""


class GeminiProvider(SuggestionProvider):
    name = "gemini"

    def __init__(self, api_key: str, model: str, client=None):
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(temperature=0.9),
            )
        except genai_errors.APIError as e:
            if e.code == 429:
                raise RateLimited(str(e)) from e
            raise
        return response.text or ""


class OpenAIProvider(SuggestionProvider):
    name = "openai"

    def __init__(self, api_key: str, model: str, client=None):
        self.model = model
        self.client = client or openai.OpenAI(api_key=api_key)

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.9,
            )
        except openai.RateLimitError as e:
            raise RateLimited(str(e)) from e
        return (response.choices[0].message.content or "").strip()


def build_prompt(context: Optional[str] = None) -> str:
    context = (context or "").strip()
    if context:
        return (
            f'You are a Pokemon expert. Based on the user\'s interest: "{context}", suggest '
            f"{MAX_SUGGESTIONS} Pokemon names they might want to search for.\n"
            'Return ONLY a valid JSON array with objects containing "name" (the exact Pokemon name, '
            'lowercase) and "reason" (a brief 10-15 word explanation of why this Pokemon matches '
            "their interest).\n"
            'Example format: [{"name": "pikachu", "reason": "Electric type mascot, beloved for its '
            'cute appearance and powerful thunderbolt"}]\n'
            "Only include real Pokemon from the official games. Return nothing but the JSON array."
        )
    return (
        f"You are a Pokemon expert. Suggest {MAX_SUGGESTIONS} random interesting Pokemon for someone "
        "to discover and review.\n"
        'Return ONLY a valid JSON array with objects containing "name" (the exact Pokemon name, '
        'lowercase) and "reason" (a brief 10-15 word explanation of what makes this Pokemon '
        "interesting).\n"
        'Example format: [{"name": "gengar", "reason": "Ghost/Poison type with mischievous '
        'personality and powerful shadow abilities"}]\n'
        "Include a mix of popular and lesser-known Pokemon from different generations. "
        "Return nothing but the JSON array."
    )


def parse_suggestions(text: str) -> Optional[List[Suggestion]]:
    """First JSON array in `text` as suggestions, or None when it cannot be read."""
    match = _JSON_ARRAY_RE.search(text or "")
    if not match:
        return None
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(items, list):
        return None
    suggestions = []
    for item in items:
        try:
            suggestions.append(Suggestion.model_validate(item))
        except ValidationError:
            continue
    return suggestions[:MAX_SUGGESTIONS]


def get_suggestions(providers: Sequence[SuggestionProvider], context: Optional[str] = None) -> ActionResult[List[Suggestion]]:
    if not providers:
        return fail(ErrorKind.UPSTREAM, "AI service not configured", data=[])

    prompt = build_prompt(context)
    for provider in providers:
        try:
            text = provider.generate(prompt)
        except RateLimited:
            logger.warning(f"AI provider {provider.name} is rate limited, trying next")
            continue
        except Exception:
            logger.exception(f"AI provider {provider.name} failed")
            return fail(ErrorKind.UPSTREAM, "Failed to get AI suggestions", data=[])

        suggestions = parse_suggestions(text)
        if suggestions is None:
            logger.warning(f"Could not parse suggestions from {provider.name}: {text[:200]!r}")
            return fail(ErrorKind.UPSTREAM, "Failed to parse AI response", data=[])
        return ok(suggestions)

    return fail(ErrorKind.UPSTREAM, "AI suggestions are temporarily unavailable", data=[])
