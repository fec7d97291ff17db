"""Pytest configuration and shared fixtures."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt as jose_jwt

from carbon_coach.api.v1.schemas.footprint import (
    DietInput,
    EnergyInput,
    FootprintInput,
    FootprintRecord,
    FootprintResult,
    TransportInput,
    WasteInput,
)
from carbon_coach.core.config import Settings
from carbon_coach.main import create_app
from carbon_coach.services.advice_gateway import AdviceGateway


class FakeGeminiClient:
    """Replays scripted outcomes: a string is returned, an exception is raised."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.prompts: List[str] = []
        self.histories: List[list] = []

    def _next(self):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._next()

    async def send_chat_message(self, history: list, message: str) -> str:
        self.prompts.append(message)
        self.histories.append(history)
        return self._next()


class FakeSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


class InMemoryFootprintStore:
    def __init__(self, configured: bool = True, fail: bool = False):
        self._configured = configured
        self.fail = fail
        self.records: List[FootprintRecord] = []
        self.calls_on_event_loop = 0

    def _note_thread(self):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.calls_on_event_loop += 1

    @property
    def configured(self) -> bool:
        return self._configured

    def ensure_schema(self) -> bool:
        return True

    def add_footprint(self, owner_id: str, result: FootprintResult, raw_input: FootprintInput) -> Optional[FootprintRecord]:
        self._note_thread()
        if self.fail:
            return None
        record = FootprintRecord(
            **result.model_dump(),
            id=len(self.records) + 1,
            ownerId=owner_id,
            rawInput=raw_input.model_dump(),
            createdAt=datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(days=len(self.records)),
        )
        self.records.append(record)
        return record

    def list_footprints(self, owner_id: str) -> Optional[List[FootprintRecord]]:
        self._note_thread()
        if self.fail:
            return None
        return [r for r in self.records if r.ownerId == owner_id]


@pytest.fixture
def sample_input() -> FootprintInput:
    return FootprintInput(
        transport=TransportInput(carMilesPerWeek=100, transitRidesPerWeek=2, flightsPerYear=2),
        energy=EnergyInput(kwhPerMonth=700, heatingType="natural_gas"),
        diet=DietInput(type="average"),
        waste=WasteInput(recyclingFrequency="sometimes", composting=False),
    )


@pytest.fixture
def sample_payload(sample_input) -> dict:
    return sample_input.model_dump()


@pytest.fixture
def fake_gemini():
    return FakeGeminiClient


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(GEMINI_API_KEY=None, DATABASE_URL=None, DB_HOST=None)


@pytest.fixture
def store() -> InMemoryFootprintStore:
    return InMemoryFootprintStore()


@pytest.fixture
def failing_store() -> InMemoryFootprintStore:
    return InMemoryFootprintStore(fail=True)


@pytest.fixture
def auth_headers() -> dict:
    token = jose_jwt.encode({"sub": "user-123"}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_client(test_settings, store, fake_sleep):
    def _make(gemini_client=None, footprint_store=None) -> TestClient:
        gateway = AdviceGateway(gemini_client, sleep=fake_sleep)
        app = create_app(
            settings=test_settings,
            advice_gateway=gateway,
            footprint_store=footprint_store or store,
        )
        return TestClient(app)
    return _make
