"""Engine settings read from environment variables.

The comparison candidates are configuration, not engine constants. The CLI
and the web app build an ``EngineSettings`` with ``settings_from_env`` and
pass it to the facade.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Tuple

from .errors import InvalidInputError
from .utils import decimal_from_str

DEFAULT_INSTALMENT_CANDIDATES: Tuple[int, ...] = (12, 24, 36, 48, 60, 72, 84)
DEFAULT_BALLOON_CANDIDATES: Tuple[Decimal, ...] = tuple(Decimal(p) for p in (0, 10, 20, 30, 40, 50))
DEFAULT_MAX_WORKERS = 4
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class EngineSettings:
    instalment_candidates: Tuple[int, ...] = DEFAULT_INSTALMENT_CANDIDATES
    balloon_percentage_candidates: Tuple[Decimal, ...] = DEFAULT_BALLOON_CANDIDATES
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = "WARNING"


def _parse_list(raw: str, name: str) -> Tuple[str, ...]:
    parts = [p.strip() for p in raw.replace("\n", ",").split(",")]
    parts = [p for p in parts if p]
    if not parts:
        raise InvalidInputError(f"{name} must list at least one value", field=name)
    return tuple(parts)


def parse_instalment_candidates(raw: str, name: str = "LOAN_COMPARE_INSTALMENT_CANDIDATES") -> Tuple[int, ...]:
    try:
        return tuple(int(p) for p in _parse_list(raw, name))
    except ValueError as exc:
        raise InvalidInputError(f"{name} must be a comma separated list of integers: {raw}", field=name) from exc


def parse_balloon_candidates(raw: str, name: str = "LOAN_COMPARE_BALLOON_CANDIDATES") -> Tuple[Decimal, ...]:
    return tuple(decimal_from_str(p, field=name) for p in _parse_list(raw, name))


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Build settings from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ
    settings = EngineSettings()

    instalments = settings.instalment_candidates
    if env.get("LOAN_COMPARE_INSTALMENT_CANDIDATES"):
        instalments = parse_instalment_candidates(env["LOAN_COMPARE_INSTALMENT_CANDIDATES"])

    balloons = settings.balloon_percentage_candidates
    if env.get("LOAN_COMPARE_BALLOON_CANDIDATES"):
        balloons = parse_balloon_candidates(env["LOAN_COMPARE_BALLOON_CANDIDATES"])

    max_workers = settings.max_workers
    if env.get("LOAN_COMPARE_MAX_WORKERS"):
        try:
            max_workers = int(env["LOAN_COMPARE_MAX_WORKERS"])
        except ValueError as exc:
            raise InvalidInputError(
                "LOAN_COMPARE_MAX_WORKERS must be an integer", field="LOAN_COMPARE_MAX_WORKERS"
            ) from exc
        if max_workers < 1:
            raise InvalidInputError("LOAN_COMPARE_MAX_WORKERS must be at least 1", field="LOAN_COMPARE_MAX_WORKERS")

    log_level = env.get("LOAN_COMPARE_LOG_LEVEL", settings.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise InvalidInputError(f"LOAN_COMPARE_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}", field="LOAN_COMPARE_LOG_LEVEL")

    return EngineSettings(
        instalment_candidates=instalments,
        balloon_percentage_candidates=balloons,
        max_workers=max_workers,
        log_level=log_level,
    )
