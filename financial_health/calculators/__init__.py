"""Helper package that exposes the engine's calculators.

The `calculators` package contains small, focused modules that each implement
one piece of the financial health logic:

* ``safe_math`` – guarded division and number parsing.
* ``normalizer`` – alias resolution and partner combination for raw profiles.
* ``returns`` – age, horizon and risk adjusted return assumptions.
* ``inflation`` – real values, Fisher real returns and inflation scenarios.
* ``taxes`` – country payroll contributions and capital gains tax.
* ``national_insurance`` – Israeli National Insurance contributions and benefits.
* ``projection`` – compounded accumulation and retirement income.
* ``scoring`` – the eight-factor health score and suggestions.
* ``rebalancing`` – allocation drift, triggers, tax impact and cost/benefit.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import (  # noqa: F401
    inflation,
    national_insurance,
    normalizer,
    projection,
    rebalancing,
    returns,
    safe_math,
    scoring,
    taxes,
)

__all__ = [
    "inflation",
    "national_insurance",
    "normalizer",
    "projection",
    "rebalancing",
    "returns",
    "safe_math",
    "scoring",
    "taxes",
]
