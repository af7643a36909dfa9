# backend/dt_core/common/conf.py
from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "AUTO_ACCEPT_INCONCLUSIVE": False,
    "MATCH_HIGH_CONFIDENCE": 80,
    "MATCH_MEDIUM_CONFIDENCE": 60,
    "SEARCH_RESULT_LIMIT": 50,
}


def drug_test_setting(name: str) -> Any:
    """
    Engine tunables from settings.DRUG_TESTS, falling back to DEFAULTS.
    Unknown names are a programming error.
    """
    if name not in DEFAULTS:
        raise KeyError(name)
    overrides = getattr(settings, "DRUG_TESTS", None) or {}
    return overrides.get(name, DEFAULTS[name])
