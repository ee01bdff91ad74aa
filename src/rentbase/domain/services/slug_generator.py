"""Slug generator service.

Generates URL-friendly slugs for tenants and business units and validates
slugs supplied by callers.
"""

import re
import unicodedata
from dataclasses import dataclass

from rentbase.core.exceptions import InvalidSlug


@dataclass(frozen=True)
class SlugValidationError:
    """Represents a slug validation error.

    Attributes:
        field: The field name (e.g. 'slug').
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    field: str
    message: str
    code: str


class SlugGenerator:
    """Generate and validate URL-friendly slugs.

    Slug rules:
    - 3-48 characters
    - Lowercase alphanumeric + hyphens only
    - Must start with a letter
    """

    MIN_LENGTH = 3
    MAX_LENGTH = 48

    VALID_SLUG_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")

    @classmethod
    def generate(cls, text: str, fallback: str = "tenant") -> str:
        """Generate a slug from text.

        Args:
            text: The text to convert (e.g. a tenant name).
            fallback: Slug to use when nothing usable remains.

        Returns:
            URL-friendly slug.

        Examples:
            >>> SlugGenerator.generate("Acme Rentals")
            'acme-rentals'
            >>> SlugGenerator.generate("Grúas & Equipos, S.A.")
            'gruas-equipos-s-a'
        """
        normalized = unicodedata.normalize("NFKD", text)
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii")

        slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
        slug = re.sub(r"-+", "-", slug)
        # Must start with a letter
        slug = re.sub(r"^[0-9-]+", "", slug)

        if len(slug) > cls.MAX_LENGTH:
            slug = slug[: cls.MAX_LENGTH].rstrip("-")

        if len(slug) < cls.MIN_LENGTH:
            slug = fallback

        return slug

    @classmethod
    def validate(cls, slug: str, field: str = "slug") -> list[SlugValidationError]:
        """Validate a slug against the rules.

        Args:
            slug: The slug to validate.
            field: Field name reported in the errors.

        Returns:
            List of validation errors. Empty list if slug is valid.
        """
        errors: list[SlugValidationError] = []

        if len(slug) < cls.MIN_LENGTH:
            errors.append(
                SlugValidationError(
                    field=field,
                    message=f"Slug must be at least {cls.MIN_LENGTH} characters",
                    code="slug_too_short",
                )
            )

        if len(slug) > cls.MAX_LENGTH:
            errors.append(
                SlugValidationError(
                    field=field,
                    message=f"Slug must be at most {cls.MAX_LENGTH} characters",
                    code="slug_too_long",
                )
            )

        if not cls.VALID_SLUG_PATTERN.match(slug):
            if slug and not slug[0].isalpha():
                errors.append(
                    SlugValidationError(
                        field=field,
                        message="Slug must start with a letter",
                        code="slug_invalid_start",
                    )
                )
            else:
                errors.append(
                    SlugValidationError(
                        field=field,
                        message="Slug must contain only lowercase letters, numbers, and hyphens",
                        code="slug_invalid_chars",
                    )
                )

        return errors

    @classmethod
    def ensure_valid(cls, slug: str, field: str = "slug") -> None:
        """Raise ``InvalidSlug`` unless the slug satisfies every rule."""
        errors = cls.validate(slug, field)
        if errors:
            raise InvalidSlug(slug, [error.message for error in errors])

    @classmethod
    def is_valid(cls, slug: str) -> bool:
        """Check if a slug is valid."""
        return not cls.validate(slug)
