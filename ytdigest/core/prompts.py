"""
Per-language summarization policies.

Each language maps to a ``LanguagePolicy`` that builds the prompt and
post-filters the model's answer. Languages without an entry use the
default policy.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from ytdigest.core.languages import get_language
from ytdigest.utils.logger import logging


DEFAULT_CHAR_BUDGET = 8000

COMMON_BOILERPLATE = (
    "Here is the summary:",
    "Here's the summary:",
    "The summary is:",
    "Summary:",
)

# Chinese ideographs, hiragana and katakana
CJK_PATTERN = r"[\u4E00-\u9FFF\u3040-\u309F\u30A0-\u30FF]"


def clip(text: str, budget: int) -> str:
    """Cut ``text`` to ``budget`` characters, marking the cut with an ellipsis."""
    return text[:budget] + ("..." if len(text) > budget else "")


def default_prompt(text: str, language_name: str, budget: int) -> str:
    return f"""Please provide a comprehensive summary of the following transcript in {language_name}.
The summary should be well-structured, cover all main points, and be written entirely in {language_name}.
Do not include timestamps, metadata, or technical details. Focus on the actual content and meaning.

Transcript:
{clip(text, budget)}

Summary in {language_name}:"""


def hebrew_prompt(text: str, language_name: str, budget: int) -> str:
    # The Hebrew-only instruction is stated twice
    return f"""אתה עוזר AI. התמלול הבא הוא בעברית. אתה חייב לסכם אותו בעברית בלבד.

חשוב מאוד: כתוב את הסיכום בעברית בלבד. אל תכתוב באנגלית, יפנית, סינית, ספרדית, גרמנית או שפה אחרת. רק עברית.

הסיכום צריך להיות מפורט ומקיף, לכסות את כל הנושאים העיקריים שנדונו בתמלול.

התמלול:
{clip(text, budget)}

סיכום בעברית בלבד:"""


def script_filter(native_pattern: str, foreign_pattern: str = CJK_PATTERN,
                  max_foreign_ratio: float = 0.3) -> Callable[[str], str]:
    """
    Build a response filter that drops lines written in the wrong script.

    A line is kept when it contains at least one native-script character
    and foreign-script characters make up less than ``max_foreign_ratio``
    of it. When the filter removes more than half of the text, the
    unfiltered text is returned instead.
    """
    native = re.compile(native_pattern)
    foreign = re.compile(foreign_pattern)

    def apply(text: str) -> str:
        kept = []
        for line in text.split("\n"):
            stripped = line.strip()
            if not stripped:
                continue
            if native.search(stripped) and len(foreign.findall(stripped)) < len(stripped) * max_foreign_ratio:
                kept.append(stripped)
        filtered = "\n".join(kept).strip()
        if len(filtered) < len(text) * 0.5:
            logging.warning("Script filter removed more than half of the summary; keeping unfiltered text")
            return text
        return filtered

    return apply


@dataclass(frozen=True)
class LanguagePolicy:
    prompt_builder: Callable[[str, str, int], str] = default_prompt
    response_filter: Optional[Callable[[str], str]] = None
    char_budget: int = DEFAULT_CHAR_BUDGET
    boilerplate: Tuple[str, ...] = field(default=COMMON_BOILERPLATE)

    def build_prompt(self, text: str, language: str) -> str:
        return self.prompt_builder(text, get_language(language).name, self.char_budget)

    def strip_boilerplate(self, text: str) -> str:
        """Remove lead-in phrases such as "Summary:" from the start of the answer."""
        for prefix in self.boilerplate:
            if text.startswith(prefix):
                text = text[len(prefix):].strip()
        return text

    def postprocess(self, text: str) -> str:
        text = self.strip_boilerplate(text.strip())
        if self.response_filter:
            text = self.response_filter(text)
        return text


DEFAULT_POLICY = LanguagePolicy()

LANGUAGE_POLICIES: Dict[str, LanguagePolicy] = {
    "he": LanguagePolicy(
        prompt_builder=hebrew_prompt,
        response_filter=script_filter(r"[\u0590-\u05FF]"),
        char_budget=12000,
        boilerplate=COMMON_BOILERPLATE + ("סיכום בעברית בלבד:", "סיכום בעברית:", "סיכום:", "תקציר:"),
    ),
    "ar": LanguagePolicy(
        response_filter=script_filter(r"[\u0600-\u06FF]"),
        boilerplate=COMMON_BOILERPLATE + ("الملخص:", "ملخص:"),
    ),
    "es": LanguagePolicy(boilerplate=COMMON_BOILERPLATE + ("Resumen:",)),
    "fr": LanguagePolicy(boilerplate=COMMON_BOILERPLATE + ("Résumé :", "Résumé:")),
    "de": LanguagePolicy(boilerplate=COMMON_BOILERPLATE + ("Zusammenfassung:",)),
}


def get_policy(language: str) -> LanguagePolicy:
    return LANGUAGE_POLICIES.get(language, DEFAULT_POLICY)
