"""Target language catalog."""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Language:
    """A language the user can translate cards into."""
    code: str
    name: str
    flag: str


LANGUAGES: List[Language] = [
    Language("en", "English", "🇬🇧"),
    Language("de", "German", "🇩🇪"),
    Language("fr", "French", "🇫🇷"),
    Language("es", "Spanish", "🇪🇸"),
    Language("it", "Italian", "🇮🇹"),
    Language("pt", "Portuguese", "🇵🇹"),
    Language("nl", "Dutch", "🇳🇱"),
    Language("pl", "Polish", "🇵🇱"),
    Language("uk", "Ukrainian", "🇺🇦"),
    Language("ru", "Russian", "🇷🇺"),
    Language("tr", "Turkish", "🇹🇷"),
    Language("ar", "Arabic", "🇸🇦"),
    Language("zh", "Chinese", "🇨🇳"),
    Language("ja", "Japanese", "🇯🇵"),
    Language("ko", "Korean", "🇰🇷"),
]

_BY_CODE: Dict[str, Language] = {lang.code: lang for lang in LANGUAGES}


def get_language(code: str) -> Optional[Language]:
    """Look up a catalog language by code (case-insensitive)."""
    if not code:
        return None
    return _BY_CODE.get(code.strip().lower())
