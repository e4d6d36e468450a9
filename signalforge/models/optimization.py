"""
SignalForge - Optimization Results
==================================

Trial bookkeeping for parameter sweeps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


@dataclass(frozen=True)
class TrialResult:
    """Objective reached by one parameter value."""
    parameter: Any
    objective: float
    trial_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"trial_index": self.trial_index, "parameter": self.parameter, "objective": self.objective}


@dataclass(frozen=True)
class TrialFailure:
    """A trial excluded from the results because it raised."""
    parameter: Any
    trial_index: int
    error_type: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trial_index": self.trial_index,
            "parameter": self.parameter,
            "error_type": self.error_type,
            "message": self.message
        }


@dataclass
class OptimizationResult:
    """
    Outcome of a parameter sweep.

    ``trial_count`` counts every attempted trial, including failed ones, so
    callers can correct for multiple testing.
    """
    trials: List[TrialResult] = field(default_factory=list)
    failures: List[TrialFailure] = field(default_factory=list)
    trial_count: int = 0

    def record_trial(self, trial: TrialResult) -> None:
        self.trials.append(trial)
        self.trials.sort(key=lambda t: t.trial_index)
        self.trial_count += 1

    def record_failure(self, failure: TrialFailure) -> None:
        self.failures.append(failure)
        self.failures.sort(key=lambda f: f.trial_index)
        self.trial_count += 1

    @property
    def best(self) -> Optional[TrialResult]:
        """Maximum objective; the earliest trial wins ties."""
        best = None
        for trial in self.trials:
            if best is None or trial.objective > best.objective:
                best = trial
        return best

    @property
    def best_parameter(self) -> Any:
        return self.best.parameter if self.best else None

    @property
    def best_objective(self) -> Optional[float]:
        return self.best.objective if self.best else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "best_parameter": self.best_parameter,
            "best_objective": self.best_objective,
            "trial_count": self.trial_count,
            "trials": [t.to_dict() for t in self.trials],
            "failures": [f.to_dict() for f in self.failures]
        }

    def to_frame(self) -> pd.DataFrame:
        """Successful trials as a DataFrame ordered by trial index."""
        return pd.DataFrame(
            [t.to_dict() for t in self.trials],
            columns=["trial_index", "parameter", "objective"]
        )
