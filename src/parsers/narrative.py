"""Narrative detection and the "current meta" theme list.

The theme list is configuration, versioned, and passed into the scorer
explicitly so two runs with the same MetaThemes score identically.
"""

import re
from dataclasses import dataclass

from config.settings import Settings, settings as default_settings

# Themes this short are matched as whole words ("ai" must not hit "rain")
_WORD_MATCH_MAX_LEN = 3

# Fallback classifier for tokens with no social narrative: label -> keywords
_NARRATIVE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("AI / Agents", ("ai", "agent", "gpt")),
    ("Political", ("trump", "maga", "biden")),
    ("Classic Meme", ("pepe", "doge", "shib")),
    ("Animal", ("cat", "dog", "frog")),
]


@dataclass(frozen=True)
class MetaThemes:
    version: str
    themes: tuple[str, ...]

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "MetaThemes":
        cfg = cfg or default_settings
        return cls(
            version=cfg.meta_themes_version,
            themes=tuple(t.strip().lower() for t in cfg.meta_themes if t.strip()),
        )

    def matches(self, *texts: str) -> bool:
        """True if any theme appears in any of the given texts."""
        return any(_contains_theme(text, theme) for text in texts for theme in self.themes)


def _contains_theme(text: str, theme: str) -> bool:
    text = text.lower()
    theme = theme.lower()
    if len(theme) <= _WORD_MATCH_MAX_LEN:
        return re.search(rf"\b{re.escape(theme)}\b", text) is not None
    return theme in text


def detect_narrative(name: str, ticker: str) -> str | None:
    """Guess a narrative label from the token name/ticker, or None."""
    text = f"{name} {ticker}"
    for label, keywords in _NARRATIVE_KEYWORDS:
        if any(_contains_theme(text, kw) for kw in keywords):
            return label
    return None
