"""
Ledger configuration.

``LedgerConfig`` is the single source of deployment parameters. It can be
built directly, loaded from YAML (``load_config``) or overlaid from the
environment (``config_from_env``); ``build_ledger`` wires the result into a
running ``Ledger``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from ..core.auth import RoleTable
from ..core.clock import Clock, SystemClock
from ..core.ledger import Ledger
from ..core.math import MAX_UINT256
from ..core.rates import GlobalRateController
from ..core.types import Role
from ..util.structured_log import configure_logging

ENV_PREFIX = "ACCRUAL_LEDGER_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _require_accounts(value: Any, *, name: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{name} must be a list of account strings")
    out = []
    for item in value:
        if not isinstance(item, str) or not item:
            raise ValueError(f"{name} entries must be non-empty strings")
        out.append(item)
    return tuple(out)


@dataclass(frozen=True)
class LedgerConfig:
    # Global rate at genesis (per second, scaled by PRECISION). It also caps
    # every frozen rate, since the global rate can only fall.
    initial_rate: int = 0

    # Role administration: `owner` grants/revokes; the tuples seed each role.
    owner: str = "owner"
    minters: Tuple[str, ...] = ()
    burners: Tuple[str, ...] = ()
    rate_admins: Tuple[str, ...] = ()

    # Run whole-ledger invariant checks on every candidate post-state.
    check_invariants: bool = True

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.initial_rate, int) or isinstance(self.initial_rate, bool):
            raise TypeError("initial_rate must be an int")
        if not (0 <= self.initial_rate <= MAX_UINT256):
            raise ValueError(f"initial_rate out of range: {self.initial_rate}")
        if not isinstance(self.owner, str) or not self.owner:
            raise ValueError("owner must be a non-empty string")
        for name in ("minters", "burners", "rate_admins"):
            object.__setattr__(self, name, _require_accounts(getattr(self, name), name=name))
        if not isinstance(self.check_invariants, bool):
            raise TypeError("check_invariants must be a bool")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        object.__setattr__(self, "log_level", self.log_level.upper())


_FIELD_NAMES = tuple(f.name for f in fields(LedgerConfig))


def config_from_mapping(obj: Mapping[str, Any]) -> LedgerConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("config must be a mapping")
    unknown = sorted(set(obj) - set(_FIELD_NAMES))
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    return LedgerConfig(**dict(obj))


def load_config(path: Path) -> LedgerConfig:
    """Load a ``LedgerConfig`` from a YAML file. An empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return LedgerConfig()
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return config_from_mapping(obj)


def _parse_bool(raw: str, *, name: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def config_from_env(environ: Mapping[str, str], base: Optional[LedgerConfig] = None) -> LedgerConfig:
    """Overlay ``ACCRUAL_LEDGER_*`` variables onto ``base`` (or the defaults).

    List-valued fields are comma-separated.
    """
    cfg = base or LedgerConfig()
    updates: dict[str, Any] = {}
    for name in _FIELD_NAMES:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        if name == "initial_rate":
            try:
                updates[name] = int(raw.strip())
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}INITIAL_RATE must be an integer, got {raw!r}") from exc
        elif name == "check_invariants":
            updates[name] = _parse_bool(raw, name=ENV_PREFIX + name.upper())
        elif name in ("minters", "burners", "rate_admins"):
            updates[name] = tuple(part.strip() for part in raw.split(",") if part.strip())
        else:
            updates[name] = raw.strip()
    return replace(cfg, **updates) if updates else cfg


def build_roles(config: LedgerConfig) -> RoleTable:
    return RoleTable(
        config.owner,
        grants={
            Role.MINTER: config.minters,
            Role.BURNER: config.burners,
            Role.RATE_ADMIN: config.rate_admins,
        },
    )


def build_ledger(config: LedgerConfig, clock: Optional[Clock] = None) -> Tuple[Ledger, RoleTable]:
    """Wire roles, rate controller and ledger from ``config``. Also configures logging."""
    configure_logging(config.log_level)
    roles = build_roles(config)
    ledger = Ledger(
        clock=clock or SystemClock(),
        authorizer=roles,
        rates=GlobalRateController(config.initial_rate),
        check_invariants=config.check_invariants,
    )
    return ledger, roles
