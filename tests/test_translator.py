"""Tests for locale negotiation and message lookup."""

from themebars.core.translator import Translator, flatten_messages, parse_accept_language

TRANSLATIONS = {
    "en": {"cart": {"title": "Your cart", "items": "{count} items"}, "footer": "Thanks"},
    "fr": {"cart": {"title": "Votre panier"}},
    "fr-CA": {"cart": {"title": "Votre chariot"}},
    "de-DE": {"cart": {"title": "Warenkorb"}},
}


class TestParseAcceptLanguage:
    """Tests for Accept-Language header parsing."""

    def test_orders_by_quality(self):
        assert parse_accept_language("en;q=0.5, fr-CA, de;q=0.8") == ["fr-ca", "de", "en"]

    def test_keeps_header_order_for_ties(self):
        assert parse_accept_language("fr, en") == ["fr", "en"]

    def test_drops_zero_quality_and_blank_entries(self):
        assert parse_accept_language("fr;q=0, , en") == ["en"]

    def test_malformed_quality_counts_as_one(self):
        assert parse_accept_language("de;q=abc, en;q=0.9") == ["de", "en"]

    def test_empty_header(self):
        assert parse_accept_language(None) == []
        assert parse_accept_language("") == []


class TestNegotiation:
    """Tests for picking the active locale."""

    def test_exact_match(self):
        assert Translator.create("fr-CA", TRANSLATIONS).get_locale() == "fr-ca"

    def test_primary_language_match(self):
        assert Translator.create("fr-BE", TRANSLATIONS).get_locale() == "fr"

    def test_regional_variant_match(self):
        assert Translator.create("de", TRANSLATIONS).get_locale() == "de-de"

    def test_falls_back_to_default_locale(self):
        assert Translator.create("ja, zh;q=0.9", TRANSLATIONS).get_locale() == "en"

    def test_wildcard_selects_default(self):
        assert Translator.create("*", TRANSLATIONS).get_locale() == "en"

    def test_falls_back_to_first_available_without_default(self):
        translator = Translator.create("ja", {"nl": {"a": "b"}, "es": {"a": "c"}})
        assert translator.get_locale() == "es"

    def test_empty_table_uses_default_name(self):
        assert Translator.create("fr", {}).get_locale() == "en"
        assert Translator.create("fr", None).get_locale() == "en"


class TestTranslate:
    """Tests for message lookup and placeholder substitution."""

    def test_nested_keys_are_dotted(self):
        assert flatten_messages({"a": {"b": {"c": "x"}}, "d": 1}) == {"a.b.c": "x", "d": "1"}

    def test_translates_in_active_locale(self):
        assert Translator.create("fr-CA", TRANSLATIONS).translate("cart.title") == "Votre chariot"

    def test_falls_back_to_default_locale_for_missing_key(self):
        assert Translator.create("fr", TRANSLATIONS).translate("footer") == "Thanks"

    def test_missing_key_is_empty_string(self):
        assert Translator.create("en", TRANSLATIONS).translate("nope") == ""

    def test_substitutes_placeholders(self):
        translator = Translator.create("en", TRANSLATIONS)
        assert translator.translate("cart.items", {"count": 3}) == "3 items"

    def test_unknown_placeholders_are_left_alone(self):
        translator = Translator.create("en", TRANSLATIONS)
        assert translator.translate("cart.items", {"other": 1}) == "{count} items"

    def test_get_translations_merges_fallbacks(self):
        merged = Translator.create("fr-CA", TRANSLATIONS).get_translations()
        assert merged["cart.title"] == "Votre chariot"
        assert merged["footer"] == "Thanks"
