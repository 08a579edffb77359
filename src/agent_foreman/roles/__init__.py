"""Multi-perspective requirement analysis."""

from .aggregator import RoleAggregator, UnifiedDocument
from .backend_engineer import BackendAnalysisResult, BackendEngineerRole
from .frontend_engineer import FrontendAnalysisResult, FrontendEngineerRole
from .multi_role import MultiRoleResult, RoleOutcome, parse_roles_option, run_multi_role_analysis, save_analysis
from .product_manager import PMAnalysisResult, ProductManagerRole
from .tester import QAAnalysisResult, TesterRole

__all__ = [
    "BackendAnalysisResult",
    "BackendEngineerRole",
    "FrontendAnalysisResult",
    "FrontendEngineerRole",
    "MultiRoleResult",
    "PMAnalysisResult",
    "ProductManagerRole",
    "QAAnalysisResult",
    "RoleAggregator",
    "RoleOutcome",
    "TesterRole",
    "UnifiedDocument",
    "parse_roles_option",
    "run_multi_role_analysis",
    "save_analysis",
]
