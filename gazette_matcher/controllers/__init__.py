"""
Controllers owning the submission and clear lifecycles.
"""

from .reset import ResetController
from .submission import SubmissionController, SubmissionState

__all__ = ["ResetController", "SubmissionController", "SubmissionState"]
