"""Tests for prompt construction."""

import pytest

from app.core.exceptions import ValidationError
from app.prompt_engine.templates import build_competitor_prompt, build_prompt, build_visibility_prompt


class TestVisibilityPrompt:
    def test_contains_category_and_brands(self):
        prompt = build_visibility_prompt("CRM software", ["Salesforce", "HubSpot"])
        assert "What are the best options for CRM software?" in prompt
        assert "Brands to consider: Salesforce, HubSpot" in prompt

    def test_asks_for_markdown_citations(self):
        prompt = build_visibility_prompt("CRM software", ["Salesforce"])
        assert "[brand name](url)" in prompt

    def test_strips_whitespace(self):
        prompt = build_visibility_prompt("  CRM software ", [" Salesforce "])
        assert "best options for CRM software?" in prompt
        assert "Brands to consider: Salesforce\n" in prompt

    @pytest.mark.parametrize("category", ["", "   ", None])
    def test_category_required(self, category):
        with pytest.raises(ValidationError, match="Category is required"):
            build_visibility_prompt(category, ["Salesforce"])

    def test_brands_required(self):
        with pytest.raises(ValidationError, match="Brands array is required"):
            build_visibility_prompt("CRM software", [])

    def test_blank_brand_rejected(self):
        with pytest.raises(ValidationError, match="non-empty strings"):
            build_visibility_prompt("CRM software", ["Salesforce", " "])


class TestCompetitorPrompt:
    def test_main_brand_listed_first(self):
        prompt = build_competitor_prompt("CRM software", "HubSpot", ["Salesforce", "Pipedrive"])
        assert "Brands to consider: HubSpot, Salesforce, Pipedrive" in prompt

    def test_main_brand_not_repeated(self):
        prompt = build_competitor_prompt("CRM software", "HubSpot", ["Salesforce", "hubspot"])
        assert "Brands to consider: HubSpot, Salesforce\n" in prompt

    def test_main_brand_required(self):
        with pytest.raises(ValidationError, match="Main brand is required"):
            build_competitor_prompt("CRM software", "", ["Salesforce"])


class TestBuildPrompt:
    def test_standard_mode(self):
        assert build_prompt("CRM software", ["Salesforce"]) == build_visibility_prompt("CRM software", ["Salesforce"])

    def test_competitor_mode_without_main_brand(self):
        with pytest.raises(ValidationError, match="Main brand is required"):
            build_prompt("CRM software", ["Salesforce"], competitor_mode=True)

    def test_main_brand_ignored_without_competitor_mode(self):
        prompt = build_prompt("CRM software", ["Salesforce"], main_brand="HubSpot")
        assert "HubSpot" not in prompt
