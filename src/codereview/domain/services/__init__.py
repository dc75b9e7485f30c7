"""Domain services - Core review logic."""

from .ai_reviewer import AIReviewer, PromptedAIReviewer, TextGenerator
from .language_detector import LanguageDetector
from .reviewer import CodeReviewer, ReviewOptions
from .team_standards import TeamStandardsService, matches_pattern

__all__ = [
    "AIReviewer",
    "PromptedAIReviewer",
    "TextGenerator",
    "LanguageDetector",
    "CodeReviewer",
    "ReviewOptions",
    "TeamStandardsService",
    "matches_pattern",
]
