"""Tests for the footprint estimation engine."""
from datetime import datetime, timezone

import pytest

from carbon_coach.api.v1.schemas.footprint import (
    DietInput,
    EnergyInput,
    FootprintResult,
    TransportInput,
    WasteInput,
)
from carbon_coach.services.footprint_calculator import (
    CARBON_FACTORS,
    estimate_diet,
    estimate_energy,
    estimate_footprint,
    estimate_total,
    estimate_transport,
    estimate_waste,
)


class TestTransport:
    def test_zero_inputs_give_zero(self):
        assert estimate_transport(TransportInput(carMilesPerWeek=0, transitRidesPerWeek=0, flightsPerYear=0)) == 0

    def test_reference_values(self):
        t = TransportInput(carMilesPerWeek=100, transitRidesPerWeek=2, flightsPerYear=2)
        assert estimate_transport(t) == pytest.approx(2.08 + 0.04628 + 2.2)

    def test_single_flight_is_1_1_tons(self):
        t = TransportInput(carMilesPerWeek=0, transitRidesPerWeek=0, flightsPerYear=1)
        assert estimate_transport(t) == pytest.approx(1.1)

    def test_no_upper_clamp(self):
        t = TransportInput(carMilesPerWeek=10_000, transitRidesPerWeek=0, flightsPerYear=0)
        assert estimate_transport(t) == pytest.approx(10_000 * 52 * 0.4 / 1000)


class TestEnergy:
    @pytest.mark.parametrize("heating,adder", [
        ("natural_gas", 2.0),
        ("oil", 2.5),
        ("electric", 0.5),
        ("renewable", 0.1),
    ])
    def test_heating_adders(self, heating, adder):
        assert estimate_energy(EnergyInput(kwhPerMonth=0, heatingType=heating)) == pytest.approx(adder)

    def test_electricity_component(self):
        e = EnergyInput(kwhPerMonth=700, heatingType="natural_gas")
        assert estimate_energy(e) == pytest.approx(3.2424 + 2.0)


class TestDiet:
    @pytest.mark.parametrize("diet_type,expected", [
        ("meat_lover", 3.3),
        ("average", 2.5),
        ("vegetarian", 1.7),
        ("vegan", 1.5),
    ])
    def test_lookup_table(self, diet_type, expected):
        assert estimate_diet(DietInput(type=diet_type)) == expected

    def test_unknown_type_defaults_to_average(self):
        assert estimate_diet(DietInput.model_construct(type="pescatarian")) == 2.5


class TestWaste:
    def test_always_with_composting(self):
        assert estimate_waste(WasteInput(recyclingFrequency="always", composting=True)) == pytest.approx(0.15)

    def test_never_without_composting(self):
        assert estimate_waste(WasteInput(recyclingFrequency="never", composting=False)) == pytest.approx(0.8)

    def test_sometimes(self):
        assert estimate_waste(WasteInput(recyclingFrequency="sometimes", composting=False)) == pytest.approx(0.4)


class TestTotal:
    def test_reference_scenario(self, sample_input):
        result = estimate_footprint(sample_input)
        assert result.transport == pytest.approx(4.32628)
        assert result.energy == pytest.approx(5.2424)
        assert result.diet == 2.5
        assert result.waste == pytest.approx(0.4)
        assert result.total == pytest.approx(12.46868)

    def test_total_is_sum_of_categories(self, sample_input):
        expected = (
            estimate_transport(sample_input.transport)
            + estimate_energy(sample_input.energy)
            + estimate_diet(sample_input.diet)
            + estimate_waste(sample_input.waste)
        )
        assert estimate_total(sample_input) == pytest.approx(expected)
        result = estimate_footprint(sample_input)
        assert result.total == result.transport + result.energy + result.diet + result.waste

    def test_repeated_calls_are_identical(self, sample_input):
        assert estimate_total(sample_input) == estimate_total(sample_input)
        assert estimate_transport(sample_input.transport) == estimate_transport(sample_input.transport)

    def test_result_is_immutable(self, sample_input):
        result = estimate_footprint(sample_input)
        with pytest.raises(Exception):
            result.total = 0

    def test_explicit_timestamp(self, sample_input):
        stamp = datetime(2026, 3, 1, tzinfo=timezone.utc)
        result = estimate_footprint(sample_input, timestamp=stamp)
        assert isinstance(result, FootprintResult)
        assert result.timestamp == stamp

    def test_factors_are_frozen(self):
        with pytest.raises(Exception):
            CARBON_FACTORS.car = 1.0
