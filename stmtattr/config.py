"""stmtattr/config.py – Configuration for statement attribute checking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Mapping

from stmtattr.errors import DiagnosticsEngine, Diags


@dataclass
class SemaConfig:
    """Tuning knobs for attribute checking."""

    filename: str = "<input>"
    warnings_as_errors: bool = False
    suppressed_diagnostics: FrozenSet[str] = field(default_factory=frozenset)
    # Reject loop-hint option names outside the option table instead of
    # treating them as ``vectorize``.
    strict_loop_hint_options: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        for name in sorted(self.suppressed_diagnostics):
            diag_id = Diags.by_name(name)
            if diag_id is None:
                warnings.append(f"unknown diagnostic '{name}' cannot be suppressed")
            elif diag_id.default_severity.is_error():
                warnings.append(f"error diagnostic '{name}' cannot be suppressed")
        return warnings

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "SemaConfig":
        """Build a config from a mapping, ignoring unrelated keys."""
        known = {
            "filename",
            "warnings_as_errors",
            "suppressed_diagnostics",
            "strict_loop_hint_options",
        }
        kwargs = {k: v for k, v in options.items() if k in known and v is not None}
        if "suppressed_diagnostics" in kwargs:
            kwargs["suppressed_diagnostics"] = frozenset(kwargs["suppressed_diagnostics"])
        return cls(**kwargs)

    def make_diagnostics_engine(self) -> DiagnosticsEngine:
        return DiagnosticsEngine(
            suppressed=self.suppressed_diagnostics,
            warnings_as_errors=self.warnings_as_errors,
        )
