"""Prompt templates for visibility checks.

Both templates ask the same question and differ only in how the brand list is
ordered. Mention detection does not depend on the prompt, so competitor mode
only changes framing.
"""

from __future__ import annotations

from app.core.exceptions import ValidationError

_VISIBILITY_TEMPLATE = """You are a helpful assistant providing recommendations. When asked about {category}, please provide a comprehensive answer that mentions specific brands and tools when relevant.

Question: What are the best options for {category}?

Please provide:
1. A detailed answer mentioning specific brands and tools
2. Include URLs/citations when mentioning brands (format: [brand name](url))
3. Explain the strengths and use cases for each option

Brands to consider: {brands}

Provide a natural, helpful response as if answering a user's question."""


def _clean_category(category: str) -> str:
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("Category is required and must be a string")
    return category.strip()


def _clean_brands(brands: list[str]) -> list[str]:
    if not brands:
        raise ValidationError("Brands array is required and must not be empty")
    cleaned = []
    for brand in brands:
        if not isinstance(brand, str) or not brand.strip():
            raise ValidationError("Brand names must be non-empty strings")
        cleaned.append(brand.strip())
    return cleaned


def build_visibility_prompt(category: str, brands: list[str]) -> str:
    """Render the standard visibility prompt for *category* and *brands*."""
    category = _clean_category(category)
    brands = _clean_brands(brands)
    return _VISIBILITY_TEMPLATE.format(category=category, brands=", ".join(brands))


def build_competitor_prompt(category: str, main_brand: str, competitors: list[str]) -> str:
    """Render the prompt with *main_brand* listed ahead of its competitors.

    The main brand is not repeated if it also appears among *competitors*.
    """
    category = _clean_category(category)
    if not isinstance(main_brand, str) or not main_brand.strip():
        raise ValidationError("Main brand is required when competitor mode is enabled")
    main = main_brand.strip()
    rest = [b for b in _clean_brands(competitors) if b.lower() != main.lower()]
    return _VISIBILITY_TEMPLATE.format(category=category, brands=", ".join([main, *rest]))


def build_prompt(
    category: str,
    brands: list[str],
    competitor_mode: bool = False,
    main_brand: str | None = None,
) -> str:
    if competitor_mode:
        return build_competitor_prompt(category, main_brand or "", brands)
    return build_visibility_prompt(category, brands)
