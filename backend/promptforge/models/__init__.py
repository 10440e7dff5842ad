"""Import all models so SQLAlchemy metadata knows about them."""
from promptforge.models.base import Base
from promptforge.models.profile import Profile
from promptforge.models.prompt import Prompt
from promptforge.models.variable import Variable
from promptforge.models.version import Version
from promptforge.models.share import PromptShare
from promptforge.models.analysis_quota import AnalysisQuota
from promptforge.models.analysis_history import AnalysisHistory
from promptforge.models.usage import PromptUsage

__all__ = [
    "Base",
    "Profile", "Prompt", "Variable", "Version", "PromptShare", "PromptUsage",
    "AnalysisQuota", "AnalysisHistory",
]
