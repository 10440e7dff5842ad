"""LLM-backed prompt analysis, its per-user quota and history."""
from promptforge.services.analysis.analyzer import PromptAnalyzer
from promptforge.services.analysis.history import AnalysisHistoryService
from promptforge.services.analysis.llm import BaseLLMProvider, create_llm_provider
from promptforge.services.analysis.quota import QuotaService

__all__ = [
    "PromptAnalyzer",
    "BaseLLMProvider",
    "create_llm_provider",
    "QuotaService",
    "AnalysisHistoryService",
]
