# src/taskwindow/__init__.py

"""Persistent age-window task scheduler."""

from .errors import ConfigurationError, StartupError, TaskWindowError, WindowSpecError
from .tasks.task_models import LastStatus, TaskContext, TaskRecord, TaskStatus
from .tasks.task_scheduler import TaskScheduler

__all__ = [
    "ConfigurationError",
    "LastStatus",
    "StartupError",
    "TaskContext",
    "TaskRecord",
    "TaskScheduler",
    "TaskStatus",
    "TaskWindowError",
    "WindowSpecError",
]
