"""LLM provider collectors: one class per vendor API, selected through the registry."""
