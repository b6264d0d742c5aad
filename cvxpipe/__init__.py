"""cvxpipe - the cvxpy solve pipeline, stage by stage, with a direct-solve bypass."""

__version__ = "0.1.0"

from . import builder, canon, config, core, dispatch, equivalence, io, kkt, pipeline, utils, verify
from .builder import ExpressionInfo, ProblemBuilder, describe_expression
from .canon import from_solver_data, get_problem_data
from .config import Settings, get_settings, set_settings, settings_context
from .core import ConeDims, ConicData, SolveResult, StageTimings, Status
from .dispatch import ProblemClass, classify, classify_data, installed_solvers, select_solver
from .equivalence import EquivalenceReport, check_equivalence, compare_results
from .io import load_conic_data, save_conic_data, solve_conic_data
from .kkt import conic_residuals, is_conic_optimal, split_solution
from .logging import configure_logging, get_logger, set_log_level
from .pipeline import CompiledProblem, PipelineProfile, profile, solve
from .unpack import dual_values, unpack, variable_values
from .verify import DCPReport, DCPViolation, require_dcp, verify_dcp

__all__ = [
    "__version__",
    "builder",
    "canon",
    "config",
    "core",
    "dispatch",
    "equivalence",
    "io",
    "kkt",
    "pipeline",
    "utils",
    "verify",
    # Core types
    "Status",
    "ConeDims",
    "ConicData",
    "StageTimings",
    "SolveResult",
    # Building
    "ProblemBuilder",
    "ExpressionInfo",
    "describe_expression",
    # Stages
    "verify_dcp",
    "require_dcp",
    "DCPReport",
    "DCPViolation",
    "ProblemClass",
    "classify",
    "classify_data",
    "installed_solvers",
    "select_solver",
    "get_problem_data",
    "from_solver_data",
    "unpack",
    "variable_values",
    "dual_values",
    # Pipeline
    "solve",
    "CompiledProblem",
    "PipelineProfile",
    "profile",
    "check_equivalence",
    "compare_results",
    "EquivalenceReport",
    # Diagnostics and I/O
    "conic_residuals",
    "is_conic_optimal",
    "split_solution",
    "save_conic_data",
    "load_conic_data",
    "solve_conic_data",
    # Configuration and logging
    "Settings",
    "get_settings",
    "set_settings",
    "settings_context",
    "get_logger",
    "set_log_level",
    "configure_logging",
]
