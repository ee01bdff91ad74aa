"""Unit tests for slug generation and the password policy."""

import pytest

from rentbase.core.exceptions import InvalidSlug, WeakPassword
from rentbase.domain.services.password_validator import PasswordValidator, default_password_validator
from rentbase.domain.services.slug_generator import SlugGenerator


class TestSlugGenerator:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Acme Rentals", "acme-rentals"),
            ("Grúas & Equipos, S.A.", "gruas-equipos-s-a"),
            ("  --Multiple   Spaces--  ", "multiple-spaces"),
            ("123 Cranes", "cranes"),
        ],
    )
    def test_generate(self, text, expected):
        assert SlugGenerator.generate(text) == expected

    def test_generate_fallback(self):
        assert SlugGenerator.generate("!!") == "tenant"
        assert SlugGenerator.generate("42", fallback="unit") == "unit"

    def test_generate_truncates(self):
        slug = SlugGenerator.generate("word " * 30)
        assert len(slug) <= SlugGenerator.MAX_LENGTH
        assert not slug.endswith("-")

    def test_validate(self):
        assert SlugGenerator.is_valid("acme-rentals")
        codes = {error.code for error in SlugGenerator.validate("9x")}
        assert codes == {"slug_too_short", "slug_invalid_start"}
        assert [e.code for e in SlugGenerator.validate("Acme")] == ["slug_invalid_chars"]

    def test_ensure_valid(self):
        with pytest.raises(InvalidSlug) as exc_info:
            SlugGenerator.ensure_valid("a")
        assert exc_info.value.slug == "a"


class TestPasswordValidator:
    def test_default_policy(self):
        assert default_password_validator.is_valid("Rental2024Pass")
        codes = {error.code for error in default_password_validator.validate("short")}
        assert codes == {"password_too_short", "password_no_uppercase", "password_no_digit"}

    def test_special_character_rule(self):
        validator = PasswordValidator(require_special=True)
        assert not validator.is_valid("Rental2024Pass")
        assert validator.is_valid("Rental2024Pass!")

    def test_ensure_valid_lists_every_problem(self):
        with pytest.raises(WeakPassword) as exc_info:
            default_password_validator.ensure_valid("alllowercase")
        assert len(exc_info.value.problems) == 2
