"""
Tests for payroll configuration.

Covers:
- PayrollConfig defaults and validation
- from_dict conversions
- YAML configuration sets via get_active_config()
- Deterministic checksums
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from payroll_config import get_active_config
from payroll_config.loader import build_active_config, compute_checksum, parse_config_set
from payroll_engines.earnings import OvertimeMode
from payroll_kernel.exceptions import InvalidPayrollConfigError
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import BonusType


class TestPayrollConfigDefaults:

    def test_defaults(self):
        config = PayrollConfig.with_defaults()
        assert config.currency == "USD"
        assert config.overtime_threshold_hours == Decimal("8")
        assert config.overtime_mode == OvertimeMode.ADDITIVE
        assert config.bonus_threshold == 30
        assert config.bonus_amount == Decimal("100")
        assert config.bonus_type == BonusType.THIRTY_ASSIGNMENTS
        assert config.placement_min_institutions == 3
        assert config.max_workers is None

    def test_overtime_policy(self):
        policy = PayrollConfig(overtime_mode=OvertimeMode.PREMIUM_ONLY).overtime_policy
        assert policy.mode == OvertimeMode.PREMIUM_ONLY
        assert policy.threshold_hours == Decimal("8")

    def test_holiday_dates(self):
        config = PayrollConfig(holidays=(date(2024, 12, 25), date(2024, 12, 25)))
        assert config.holiday_dates == frozenset({date(2024, 12, 25)})


class TestPayrollConfigValidation:

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"currency": "XYZ"}, "currency"),
            ({"overtime_threshold_hours": Decimal("0")}, "overtime_threshold_hours"),
            ({"overtime_mode": "additive"}, "overtime_mode"),
            ({"bonus_threshold": 0}, "bonus_threshold"),
            ({"bonus_amount": Decimal("-1")}, "bonus_amount"),
            ({"placement_min_assignments": -1}, "placement_min_assignments"),
            ({"max_workers": 0}, "max_workers"),
        ],
    )
    def test_invalid_values(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            PayrollConfig(**kwargs)


class TestFromDict:

    def test_conversions(self):
        config = PayrollConfig.from_dict({
            "overtime_threshold_hours": "7.5",
            "overtime_mode": "premium_only",
            "bonus_amount": 150,
            "bonus_type": "30-assignments",
            "holidays": ["2024-07-04", date(2024, 12, 25)],
            "max_workers": 4,
        })
        assert config.overtime_threshold_hours == Decimal("7.5")
        assert config.overtime_mode == OvertimeMode.PREMIUM_ONLY
        assert config.bonus_amount == Decimal("150")
        assert config.holidays == (date(2024, 7, 4), date(2024, 12, 25))
        assert config.max_workers == 4

    def test_does_not_mutate_input(self):
        data = {"bonus_amount": "50"}
        PayrollConfig.from_dict(data)
        assert data == {"bonus_amount": "50"}

    def test_unknown_key(self):
        with pytest.raises(TypeError):
            PayrollConfig.from_dict({"vacation_accrual": 1})

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            PayrollConfig.from_dict({"overtime_mode": "double"})


class TestActiveConfig:

    def test_default_set(self, captured_logs):
        active = get_active_config()
        assert active.config_id == "default"
        assert active.version == 1
        assert active.config.overtime_mode == OvertimeMode.ADDITIVE
        assert active.rate_resolver.resolve("Clinical Staff").base_hourly_rate == Decimal("35.00")
        assert len(active.rate_resolver) == 6
        assert len(active.checksum) == 64

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE"]
        assert traces and traces[0]["checksum"] == active.checksum

    def test_checksum_stable(self):
        assert get_active_config().checksum == get_active_config().checksum

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")

    def test_override_file(self, tmp_path):
        path = tmp_path / "district.yaml"
        path.write_text(
            "config_id: district-7\n"
            "version: 3\n"
            "settings:\n"
            "  overtime_mode: premium_only\n"
            "  holidays: ['2024-12-25']\n"
            "rates:\n"
            "  Bus Aide: '19.00'\n"
        )
        active = get_active_config(path)
        assert active.config_id == "district-7"
        assert active.version == 3
        assert active.config.overtime_mode == OvertimeMode.PREMIUM_ONLY
        assert active.config.holiday_dates == frozenset({date(2024, 12, 25)})
        assert active.rate_resolver.roles == ("Bus Aide",)
        assert active.source == str(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        active = get_active_config(path)
        assert active.config_id == "empty"
        assert len(active.rate_resolver) == 6

    @pytest.mark.parametrize(
        "content, match",
        [
            ("- just\n- a list\n", "top level"),
            ("settings: [1, 2]\n", "settings"),
            ("rates: 5\n", "rates"),
            ("version: abc\n", "version"),
            ("settings:\n  currency: XYZ\n", "currency"),
            ("settings:\n  unknown_knob: 1\n", "settings"),
            ("rates:\n  Aide:\n    overtime_multiplier: '2'\n", "rates"),
        ],
    )
    def test_invalid_content(self, tmp_path, content, match):
        path = tmp_path / "bad.yaml"
        path.write_text(content)
        with pytest.raises(InvalidPayrollConfigError, match=match) as exc_info:
            get_active_config(path)
        assert exc_info.value.code == "INVALID_PAYROLL_CONFIG"


class TestChecksum:

    def test_key_order_irrelevant(self):
        a = compute_checksum({"a": 1, "b": 2}, {"X": "1"})
        b = compute_checksum({"b": 2, "a": 1}, {"X": "1"})
        assert a == b

    def test_settings_change_checksum(self):
        base = parse_config_set({"settings": {"bonus_threshold": 30}}, "mem")
        changed = parse_config_set({"settings": {"bonus_threshold": 31}}, "mem")
        assert base.checksum != changed.checksum

    def test_build_from_parsed_set(self):
        config_set = parse_config_set({"config_id": "mem", "rates": {"Aide": 20}}, "mem")
        active = build_active_config(config_set, "mem")
        assert active.rate_resolver.resolve("Aide").base_hourly_rate == Decimal("20")
