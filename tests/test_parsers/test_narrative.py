"""Tests for narrative detection and meta theme matching."""

from config.settings import Settings
from src.parsers.narrative import MetaThemes, detect_narrative


class TestDetectNarrative:
    def test_ai(self):
        assert detect_narrative("Agent Smith", "SMITH") == "AI / Agents"

    def test_political(self):
        assert detect_narrative("Maga Hat", "HAT") == "Political"

    def test_classic_meme(self):
        assert detect_narrative("Baby Doge", "BDOGE") == "Classic Meme"

    def test_animal(self):
        assert detect_narrative("Fat Cat", "FCAT") == "Animal"

    def test_none(self):
        assert detect_narrative("Test Token", "TEST") is None

    def test_short_keywords_match_whole_words_only(self):
        # "ai" inside "Rain", "cat" inside "Catalyst"
        assert detect_narrative("Rain Catalyst", "RAIN") is None
        assert detect_narrative("Based AI", "BAI") == "AI / Agents"


class TestMetaThemes:
    def test_from_settings_normalizes(self):
        cfg = Settings(meta_themes=[" AI ", "Meme Revival", ""], meta_themes_version="x1")
        themes = MetaThemes.from_settings(cfg)
        assert themes.version == "x1"
        assert themes.themes == ("ai", "meme revival")

    def test_matches_any_text(self):
        themes = MetaThemes(version="t", themes=("trump", "ai"))
        assert themes.matches("Trumpcoin")
        assert themes.matches("nothing", "AI season")
        assert not themes.matches("Gaming", "Rainbow")

    def test_default_settings_have_themes(self):
        themes = MetaThemes.from_settings()
        assert themes.themes
        assert themes.version
