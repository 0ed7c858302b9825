"""Pure arithmetic for the accrual ledger.

Every function is stateless and operates on plain Python ints. Nothing here
reads a clock: callers pass ``now`` explicitly.

Growth is *linear*, not compounding:

    growth_factor(rate, elapsed) = PRECISION + elapsed * rate

so a balance held for ``t`` seconds at rate ``r`` is
``principal * (PRECISION + t * r) // PRECISION``.

Python ints never wrap, so the 256-bit bound is enforced explicitly and
exceeding it raises ``AccrualOverflowError``. Division is floor (``//``).
"""

from __future__ import annotations

from .errors import AccrualOverflowError

# Fixed-point scale (1e18).
PRECISION: int = 10**18

# Representable range for every stored or intermediate quantity.
MAX_UINT256: int = 2**256 - 1


# -- Checked helpers ---------------------------------------------------------

def _require_uint(value: int, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    if value > MAX_UINT256:
        raise AccrualOverflowError(f"{name} exceeds uint256")
    return value


def checked_add(a: int, b: int) -> int:
    """``a + b``, raising on uint256 overflow."""
    out = a + b
    if out > MAX_UINT256:
        raise AccrualOverflowError(f"overflow: {a} + {b}")
    return out


def checked_mul(a: int, b: int) -> int:
    """``a * b``, raising on uint256 overflow."""
    out = a * b
    if out > MAX_UINT256:
        raise AccrualOverflowError(f"overflow: {a} * {b}")
    return out


# -- Growth ------------------------------------------------------------------

def growth_factor(rate: int, elapsed: int) -> int:
    """Fixed-point multiplier for ``elapsed`` seconds at ``rate``.

    Returns exactly ``PRECISION`` when either input is zero.
    """
    _require_uint(rate, name="rate")
    _require_uint(elapsed, name="elapsed")
    if elapsed == 0 or rate == 0:
        return PRECISION
    return checked_add(PRECISION, checked_mul(elapsed, rate))


def accrued_balance(principal: int, rate: int, last_settled: int, now: int) -> int:
    """Displayed balance: ``principal * growth_factor(rate, now - last_settled) // PRECISION``."""
    _require_uint(principal, name="principal")
    _require_uint(last_settled, name="last_settled")
    _require_uint(now, name="now")
    if now < last_settled:
        raise ValueError(f"now ({now}) precedes last_settled ({last_settled})")
    factor = growth_factor(rate, now - last_settled)
    if factor == PRECISION:
        return principal
    return checked_mul(principal, factor) // PRECISION


def accrued_interest(principal: int, rate: int, last_settled: int, now: int) -> int:
    """Interest earned since ``last_settled`` and not yet folded into principal."""
    return accrued_balance(principal, rate, last_settled, now) - principal
