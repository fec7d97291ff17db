# carbon_coach/api/v1/schemas/advice.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from carbon_coach.api.v1.schemas.footprint import FootprintSnapshot


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    # message es opcional en el schema para poder responder 400 "Message required"
    message: Optional[str] = None
    footprint: Optional[FootprintSnapshot] = None
    habitDescription: Optional[str] = None
    history: List[HistoryMessage] = Field(default_factory=list)


class SuggestionsRequest(BaseModel):
    transport: Optional[float] = None
    energy: Optional[float] = None
    diet: Optional[float] = None
    waste: Optional[float] = None
    total: Optional[float] = None
    habitDescription: Optional[str] = None


class AdviceSuggestion(BaseModel):
    title: str = Field(..., description="Título corto de la acción (máximo 8 palabras).")
    description: str = Field(..., description="Explicación práctica de 2-3 frases.")
    impact: float = Field(..., ge=0, description="Toneladas CO2e ahorradas por año.")
    difficulty: Literal["Easy", "Medium", "Hard"]
