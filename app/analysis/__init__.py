"""LLM Response Analysis.

Pure functions over raw LLM response text:
  1. Citation Extractor: markdown links and bare URLs, deduplicated
  2. Mention Analyzer: per-brand counts, context sentences, attributed citations
  3. Scoring: visibility score and citation share

Input:  response text + tracked brand names
Output: list[BrandMention] / AnalysisResult
"""
