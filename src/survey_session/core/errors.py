from __future__ import annotations


class SurveyError(Exception):
    """Base class for survey session failures."""


class CatalogError(SurveyError):
    """The question catalog could not be loaded; no session can start."""
