# carbon_coach/api/v1/schemas/footprint.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional

HeatingType = Literal["natural_gas", "oil", "electric", "renewable"]
DietType = Literal["meat_lover", "average", "vegetarian", "vegan"]
RecyclingFrequency = Literal["always", "sometimes", "never"]


class TransportInput(BaseModel):
    carMilesPerWeek: float = Field(..., ge=0, description="Millas semanales en coche.")
    transitRidesPerWeek: float = Field(..., ge=0, description="Viajes semanales en transporte público.")
    flightsPerYear: float = Field(..., ge=0, description="Vuelos de ida y vuelta por año.")


class EnergyInput(BaseModel):
    kwhPerMonth: float = Field(..., ge=0, description="Consumo eléctrico mensual en kWh.")
    heatingType: HeatingType


class DietInput(BaseModel):
    type: DietType


class WasteInput(BaseModel):
    recyclingFrequency: RecyclingFrequency
    composting: bool = False


class FootprintInput(BaseModel):
    transport: TransportInput
    energy: EnergyInput
    diet: DietInput
    waste: WasteInput


class FootprintResult(BaseModel):
    """Huella anual en toneladas CO2e. Inmutable: cada envío crea un registro nuevo."""
    model_config = ConfigDict(frozen=True)

    transport: float
    energy: float
    diet: float
    waste: float
    total: float
    timestamp: datetime


class FootprintRecord(FootprintResult):
    id: int
    ownerId: str
    rawInput: dict[str, Any]
    createdAt: datetime = Field(..., description="Asignado por el servidor, distinto del timestamp del cliente.")


class FootprintSnapshot(BaseModel):
    # None significa "no proporcionado"; 0 es un valor válido y distinto
    transport: Optional[float] = None
    energy: Optional[float] = None
    diet: Optional[float] = None
    waste: Optional[float] = None
    total: Optional[float] = None
    previousTotal: Optional[float] = None


class ProjectionPoint(BaseModel):
    month: str
    baseline: float
    withStrategies: float
    stretch: Optional[float] = None
    predicted: Optional[float] = None


class FootprintComparison(BaseModel):
    current: Optional[float] = None
    previous: Optional[float] = None
    changePercent: int = 0
    trend: str = "unknown"


class ProjectionOutput(BaseModel):
    baseline: float
    totalSavings: float
    projectedEnd: float
    comparison: FootprintComparison
    points: List[ProjectionPoint]
