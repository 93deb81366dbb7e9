"""
Action execution for matched log content.
"""

from .action import ActionExecutor, ActionResult, build_environment, terminate_process_tree

__all__ = [
    "ActionExecutor",
    "ActionResult",
    "build_environment",
    "terminate_process_tree",
]
