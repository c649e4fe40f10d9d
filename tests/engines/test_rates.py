"""Tests for role -> pay rate resolution (payroll_engines.rates)."""

from decimal import Decimal

import pytest

from payroll_engines.rates import DEFAULT_ROLE_RATES, RateResolver
from payroll_kernel.exceptions import UnknownRoleError
from payroll_modules.contractor_pay.models import PayRate


class TestDefaultCatalogue:

    @pytest.mark.parametrize(
        "role, base",
        [
            ("Bus Aide", "18.50"),
            ("Paraprofessional", "22.00"),
            ("Cafeteria Staff", "17.50"),
            ("Substitute Teacher", "25.00"),
            ("Clinical Staff", "35.00"),
            ("Administrative Staff", "23.00"),
        ],
    )
    def test_catalogue_rates(self, role, base):
        rate = RateResolver.default().resolve(role)
        assert rate.base_hourly_rate == Decimal(base)
        assert rate.overtime_multiplier == Decimal("1.5")
        assert rate.holiday_multiplier == Decimal("2.0")

    def test_catalogue_size(self):
        assert len(RateResolver.default()) == len(DEFAULT_ROLE_RATES) == 6


class TestResolve:

    def test_unknown_role_raises(self, captured_logs):
        with pytest.raises(UnknownRoleError) as exc_info:
            RateResolver.default().resolve("Astronaut")
        assert exc_info.value.role == "Astronaut"
        assert any(r["message"] == "rate_lookup_miss" for r in captured_logs())

    def test_none_role_raises(self):
        with pytest.raises(UnknownRoleError):
            RateResolver.default().resolve(None)

    def test_lookup_is_case_sensitive(self):
        assert "substitute teacher" not in RateResolver.default()

    def test_duplicate_role_rejected(self):
        rate = PayRate(role="Aide", base_hourly_rate=Decimal("20"))
        with pytest.raises(ValueError, match="Duplicate"):
            RateResolver([rate, rate])


class TestFromMapping:

    def test_full_entry(self):
        resolver = RateResolver.from_mapping({
            "Aide": {
                "base_hourly_rate": "20.00",
                "overtime_multiplier": "2",
                "holiday_multiplier": "3",
            },
        })
        rate = resolver.resolve("Aide")
        assert rate.base_hourly_rate == Decimal("20.00")
        assert rate.overtime_multiplier == Decimal("2")
        assert rate.holiday_multiplier == Decimal("3")

    def test_bare_number_uses_default_multipliers(self):
        rate = RateResolver.from_mapping({"Aide": "19.25"}).resolve("Aide")
        assert rate.base_hourly_rate == Decimal("19.25")
        assert rate.overtime_multiplier == Decimal("1.5")

    def test_missing_base_rejected(self):
        with pytest.raises(ValueError, match="base_hourly_rate"):
            RateResolver.from_mapping({"Aide": {"overtime_multiplier": "1.5"}})

    def test_multiplier_below_one_rejected(self):
        with pytest.raises(ValueError, match="overtime_multiplier"):
            RateResolver.from_mapping({
                "Aide": {"base_hourly_rate": "20", "overtime_multiplier": "0.5"},
            })

    def test_as_dict_round_trips(self):
        resolver = RateResolver.default()
        rebuilt = RateResolver.from_mapping(resolver.as_dict())
        assert rebuilt.as_dict() == resolver.as_dict()
        assert rebuilt.roles == resolver.roles
