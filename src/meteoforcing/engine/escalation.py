"""Warn-or-fail escalation for missing meteorology variables."""
from __future__ import annotations

from typing import List, Optional

from meteoforcing.core.debug import DebugCollector, NullDebugCollector
from meteoforcing.core.models import Diagnostic, MeteoError, Severity


def describe_missing(variable: str, replacement: Optional[str] = None, severity: Severity | str | None = None) -> Diagnostic:
    """Build the diagnostic for a missing variable without side effects.

    ``severity`` defaults to error. A warning needs ``replacement`` since it
    describes the substitution that was made.
    """
    severity = Severity(severity) if severity is not None else Severity.ERROR
    if severity is Severity.WARN:
        if not replacement:
            raise ValueError(f"A warning for {variable} needs the replacement source")
        message = f"{variable} missing from input Meteo. Computed from {replacement}"
    elif replacement:
        message = (
            f"{variable} missing from input Meteo. Cannot proceed unless provided. "
            f"Hint: {variable} can be computed alternatively using {replacement} if provided in Meteo file"
        )
    else:
        message = f"{variable} missing from input Meteo. Cannot proceed unless provided."
    return Diagnostic(variable=variable, severity=severity, message=message, source=replacement)


def warn_var(
    variable: str,
    replacement: Optional[str] = None,
    severity: Severity | str | None = None,
    *,
    debug: DebugCollector | None = None,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> Diagnostic:
    """Warn about a substituted variable, or stop when it cannot be computed.

    Errors raise :class:`MeteoError` carrying the diagnostic. Warnings are
    emitted as ``meteo.warning`` debug events, appended to ``diagnostics``
    when a list is given, and returned.
    """
    debug = debug or NullDebugCollector()
    diag = describe_missing(variable, replacement, severity)
    payload = {"message": diag.message, "source": diag.source}
    if diag.severity is Severity.ERROR:
        debug.emit("meteo.error", payload, ts=None, variable=variable)
        raise MeteoError(diag)
    debug.emit("meteo.warning", payload, ts=None, variable=variable)
    if diagnostics is not None:
        diagnostics.append(diag)
    return diag


def notice(
    variable: str,
    message: str,
    *,
    debug: DebugCollector | None = None,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> Diagnostic:
    """Record a free-form warning that is not a missing-variable substitution."""
    debug = debug or NullDebugCollector()
    diag = Diagnostic(variable=variable, severity=Severity.WARN, message=message)
    debug.emit("meteo.warning", {"message": message, "source": None}, ts=None, variable=variable)
    if diagnostics is not None:
        diagnostics.append(diag)
    return diag


__all__ = ["describe_missing", "warn_var", "notice"]
