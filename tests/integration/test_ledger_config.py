"""Tests for accrual_ledger/integration/config.py."""

import pytest

from accrual_ledger.core import ManualClock, Role, Unauthorized
from accrual_ledger.integration.config import (
    LedgerConfig,
    build_ledger,
    config_from_env,
    config_from_mapping,
    load_config,
)


class TestLedgerConfig:
    def test_defaults(self):
        cfg = LedgerConfig()
        assert cfg.initial_rate == 0
        assert cfg.owner == "owner"
        assert cfg.minters == ()
        assert cfg.check_invariants is True
        assert cfg.log_level == "INFO"

    def test_lists_become_tuples(self):
        cfg = LedgerConfig(minters=["vault"], burners="vault")
        assert cfg.minters == ("vault",)
        assert cfg.burners == ("vault",)

    def test_log_level_normalized(self):
        assert LedgerConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "kwargs, exc",
        [
            ({"initial_rate": -1}, ValueError),
            ({"initial_rate": 2**256}, ValueError),
            ({"initial_rate": True}, TypeError),
            ({"initial_rate": "5"}, TypeError),
            ({"owner": ""}, ValueError),
            ({"minters": [""]}, ValueError),
            ({"minters": 5}, TypeError),
            ({"check_invariants": "yes"}, TypeError),
            ({"log_level": "LOUD"}, ValueError),
        ],
    )
    def test_rejects(self, kwargs, exc):
        with pytest.raises(exc):
            LedgerConfig(**kwargs)

    def test_unknown_keys(self):
        with pytest.raises(ValueError, match="max_rate"):
            config_from_mapping({"initial_rate": 1, "max_rate": 2})


class TestLoadConfig:
    def test_yaml(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text(
            "initial_rate: 50000000000\n"
            "owner: treasury\n"
            "minters: [vault]\n"
            "burners: [vault]\n"
            "rate_admins: [admin]\n"
            "check_invariants: false\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.initial_rate == 50_000_000_000
        assert cfg.owner == "treasury"
        assert cfg.rate_admins == ("admin",)
        assert cfg.check_invariants is False

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == LedgerConfig()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(TypeError):
            load_config(path)


class TestConfigFromEnv:
    def test_overlay(self):
        base = LedgerConfig(initial_rate=7, owner="treasury")
        cfg = config_from_env(
            {
                "ACCRUAL_LEDGER_INITIAL_RATE": " 5 ",
                "ACCRUAL_LEDGER_MINTERS": "vault, bridge,",
                "ACCRUAL_LEDGER_CHECK_INVARIANTS": "off",
                "ACCRUAL_LEDGER_LOG_LEVEL": "warning",
                "UNRELATED": "x",
            },
            base,
        )
        assert cfg.initial_rate == 5
        assert cfg.owner == "treasury"
        assert cfg.minters == ("vault", "bridge")
        assert cfg.check_invariants is False
        assert cfg.log_level == "WARNING"

    def test_empty_env_returns_base(self):
        base = LedgerConfig(initial_rate=3)
        assert config_from_env({}, base) is base

    def test_bad_int(self):
        with pytest.raises(ValueError, match="INITIAL_RATE"):
            config_from_env({"ACCRUAL_LEDGER_INITIAL_RATE": "1e9"})

    def test_bad_bool(self):
        with pytest.raises(ValueError):
            config_from_env({"ACCRUAL_LEDGER_CHECK_INVARIANTS": "maybe"})


class TestBuildLedger:
    def test_wires_roles_and_rate(self):
        cfg = LedgerConfig(initial_rate=10, minters=("vault",), rate_admins=("admin",))
        clock = ManualClock(5)
        ledger, roles = build_ledger(cfg, clock)

        assert ledger.get_global_rate() == 10
        assert ledger.rate_ceiling == 10
        assert roles.has_role(Role.MINTER, "vault")
        assert not roles.has_role(Role.BURNER, "vault")

        ledger.mint("alice", 100, caller="vault")
        assert ledger.get_user_rate("alice") == 10
        with pytest.raises(Unauthorized):
            ledger.burn("alice", 1, caller="vault")

    def test_roles_can_be_granted_after_build(self):
        ledger, roles = build_ledger(LedgerConfig(minters=("vault",)), ManualClock(0))
        ledger.mint("alice", 100, caller="vault")
        roles.grant_role(Role.BURNER, "vault", caller="owner")
        assert ledger.burn("alice", 40, caller="vault") == 40
