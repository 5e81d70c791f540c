# Errors - exception taxonomy shared by the planner, the loader and the search core


class PlanningError(Exception):
    """Base class for every error raised by walkplan."""


class InvalidTransition(PlanningError):
    """An action was applied to a state in which it is not applicable."""


class ConfigurationError(PlanningError, ValueError):
    """Invalid planner setup (heuristic weight, heuristic name, search bounds)."""


class UnsupportedProblem(ConfigurationError):
    """The problem uses a requirement or construct outside the supported fragment."""
