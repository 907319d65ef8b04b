# package

from .capabilities import Capabilities, detect_capabilities
from .limits import DEFAULT_LIMITS, AnalysisLimits
from .pipeline import AnalysisRequest, AnalysisResponse, AnalysisSettings, analyze

__all__ = [
    "AnalysisLimits",
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisSettings",
    "Capabilities",
    "DEFAULT_LIMITS",
    "analyze",
    "detect_capabilities",
]
