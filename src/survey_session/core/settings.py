"""Runtime settings read from the environment.

``SURVEY_STORE_URL`` points at the answer store; when it is unset the local
development store is used.  ``SURVEY_STORE_TIMEOUT`` bounds each request in
seconds and ``SURVEY_COMPOSITE_NAME_ID`` marks a plain text question from an
older backend as the two-part name question.  Unparseable numbers, and
timeouts that are not finite and positive, fall back to the defaults.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

DEFAULT_BASE_URL: Final = "http://localhost:3001"
DEFAULT_TIMEOUT: Final = 5.0

_URL_VAR: Final = "SURVEY_STORE_URL"
_TIMEOUT_VAR: Final = "SURVEY_STORE_TIMEOUT"
_NAME_ID_VAR: Final = "SURVEY_COMPOSITE_NAME_ID"


@dataclass(frozen=True)
class StoreSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    composite_name_id: int | None = None


def is_valid_timeout(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _parse_timeout(raw: str | None) -> float:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if is_valid_timeout(value) else DEFAULT_TIMEOUT


def _parse_id(raw: str | None) -> int | None:
    if not raw or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def load_settings(env: Mapping[str, str] | None = None) -> StoreSettings:
    source = os.environ if env is None else env
    base_url = (source.get(_URL_VAR) or "").strip().rstrip("/") or DEFAULT_BASE_URL
    return StoreSettings(
        base_url=base_url,
        timeout=_parse_timeout(source.get(_TIMEOUT_VAR)),
        composite_name_id=_parse_id(source.get(_NAME_ID_VAR)),
    )
