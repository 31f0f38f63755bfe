"""
Supported languages and the codes each external tool expects for them.
"""

from typing import Dict, NamedTuple, Optional


class Language(NamedTuple):
    name: str
    youtube_code: str
    whisper_code: str
    rtl: bool = False


DEFAULT_LANGUAGE = "en"

LANGUAGES: Dict[str, Language] = {
    "en": Language("English", "en", "en"),
    # YouTube still lists Hebrew captions under the legacy code
    "he": Language("Hebrew", "iw", "he", rtl=True),
    "es": Language("Spanish", "es", "es"),
    "fr": Language("French", "fr", "fr"),
    "de": Language("German", "de", "de"),
    "it": Language("Italian", "it", "it"),
    "pt": Language("Portuguese", "pt", "pt"),
    "ru": Language("Russian", "ru", "ru"),
    "ja": Language("Japanese", "ja", "ja"),
    "ko": Language("Korean", "ko", "ko"),
    "zh": Language("Chinese", "zh", "zh"),
    "ar": Language("Arabic", "ar", "ar", rtl=True),
}


def normalize_language(code: Optional[str]) -> str:
    """Return a supported language code, falling back to the default."""
    code = (code or "").strip().lower()
    return code if code in LANGUAGES else DEFAULT_LANGUAGE


def get_language(code: Optional[str]) -> Language:
    return LANGUAGES[normalize_language(code)]


def youtube_code(code: str) -> str:
    """Caption-track code YouTube uses for a language."""
    language = LANGUAGES.get(code)
    return language.youtube_code if language else code


def whisper_code(code: str) -> str:
    """Language code for whisper; unknown languages are auto-detected."""
    language = LANGUAGES.get(code)
    return language.whisper_code if language else "auto"
