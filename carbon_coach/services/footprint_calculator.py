# carbon_coach/services/footprint_calculator.py
"""
Motor de estimación de huella de carbono.

Funciones puras: mismas entradas, mismo resultado, sin estado global mutable.
Los límites de los sliders (p. ej. 0-500 millas/semana) se validan fuera;
aquí no se recorta ningún valor.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from carbon_coach.api.v1.schemas.footprint import (
    DietInput,
    EnergyInput,
    FootprintInput,
    FootprintResult,
    TransportInput,
    WasteInput,
)

WEEKS_PER_YEAR = 52
MONTHS_PER_YEAR = 12
# Cada viaje semanal en transporte público cuenta como 5 tramos
TRANSIT_LEGS_PER_RIDE = 5
KG_PER_TON = 1000


@dataclass(frozen=True)
class CarbonFactors:
    car: float = 0.4            # kg CO2 por milla
    transit: float = 0.089      # kg CO2 por milla (equivalente)
    flight: float = 1100        # kg CO2 por vuelo de ida y vuelta
    electricity: float = 0.386  # kg CO2 por kWh

    # Dieta, toneladas CO2e/año
    meat_lover: float = 3.3
    average: float = 2.5
    vegetarian: float = 1.7
    vegan: float = 1.5

    # Residuos, toneladas CO2e/año
    recycling_always: float = 0.2
    recycling_sometimes: float = 0.4
    recycling_never: float = 0.8
    composting: float = -0.05


CARBON_FACTORS = CarbonFactors()

# Suma fija por tipo de calefacción (t/año), no medida
HEATING_ADDERS = {
    "natural_gas": 2.0,
    "oil": 2.5,
    "electric": 0.5,
    "renewable": 0.1,
}
DEFAULT_HEATING_ADDER = HEATING_ADDERS["renewable"]

DIET_FACTORS = {
    "meat_lover": CARBON_FACTORS.meat_lover,
    "average": CARBON_FACTORS.average,
    "vegetarian": CARBON_FACTORS.vegetarian,
    "vegan": CARBON_FACTORS.vegan,
}
DEFAULT_DIET_FACTOR = CARBON_FACTORS.average

RECYCLING_FACTORS = {
    "always": CARBON_FACTORS.recycling_always,
    "sometimes": CARBON_FACTORS.recycling_sometimes,
    "never": CARBON_FACTORS.recycling_never,
}


def estimate_transport(transport: TransportInput) -> float:
    return (
        (transport.carMilesPerWeek * WEEKS_PER_YEAR * CARBON_FACTORS.car / KG_PER_TON)
        + (transport.transitRidesPerWeek * WEEKS_PER_YEAR * TRANSIT_LEGS_PER_RIDE * CARBON_FACTORS.transit / KG_PER_TON)
        + (transport.flightsPerYear * CARBON_FACTORS.flight / KG_PER_TON)
    )


def estimate_energy(energy: EnergyInput) -> float:
    electricity = energy.kwhPerMonth * MONTHS_PER_YEAR * CARBON_FACTORS.electricity / KG_PER_TON
    heating = HEATING_ADDERS.get(energy.heatingType, DEFAULT_HEATING_ADDER)
    return electricity + heating


def estimate_diet(diet: DietInput) -> float:
    return DIET_FACTORS.get(diet.type, DEFAULT_DIET_FACTOR)


def estimate_waste(waste: WasteInput) -> float:
    base = RECYCLING_FACTORS.get(waste.recyclingFrequency, CARBON_FACTORS.recycling_never)
    return base + (CARBON_FACTORS.composting if waste.composting else 0)


def estimate_total(data: FootprintInput) -> float:
    return (
        estimate_transport(data.transport)
        + estimate_energy(data.energy)
        + estimate_diet(data.diet)
        + estimate_waste(data.waste)
    )


def estimate_footprint(data: FootprintInput, timestamp: Optional[datetime] = None) -> FootprintResult:
    """Calcula las cuatro categorías y construye el registro inmutable con su total."""
    transport = estimate_transport(data.transport)
    energy = estimate_energy(data.energy)
    diet = estimate_diet(data.diet)
    waste = estimate_waste(data.waste)
    return FootprintResult(
        transport=transport,
        energy=energy,
        diet=diet,
        waste=waste,
        total=transport + energy + diet + waste,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
