"""Groq LLM collector (OpenAI-compatible API on high-throughput inference hardware)."""

from app.collectors.llm_openai import OpenAiCollector

DEFAULT_MODEL = "llama-3.3-70b-versatile"
API_URL = "https://api.groq.com/openai/v1/chat/completions"


class GroqCollector(OpenAiCollector):
    provider = "groq"
    default_model = DEFAULT_MODEL
    api_url = API_URL
