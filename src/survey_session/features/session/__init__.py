"""Session feature: the controller that owns a respondent's survey session."""

from .service import EDIT_SAVE_FAILED, RESUME_FAILED, SAVE_FAILED, SessionController

__all__ = [
    "EDIT_SAVE_FAILED",
    "RESUME_FAILED",
    "SAVE_FAILED",
    "SessionController",
]
