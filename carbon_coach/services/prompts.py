# carbon_coach/services/prompts.py
from typing import List, Optional
from carbon_coach.api.v1.schemas.advice import HistoryMessage, SuggestionsRequest
from carbon_coach.api.v1.schemas.footprint import FootprintSnapshot

CHAT_HISTORY_WINDOW = 6
SUGGESTION_COUNT = 3
MISSING_VALUE = "N/A"


def format_tons(value: Optional[float]) -> str:
    # 0 se formatea como "0.00"; solo None es "N/A"
    return f"{float(value):.2f}" if value is not None else MISSING_VALUE


def describe_trend(total: Optional[float], previous_total: Optional[float]) -> str:
    if total is None or previous_total is None:
        return "unknown"
    if total < previous_total:
        return "improving"
    if total > previous_total:
        return "worsening"
    return "stable"


def _habit_block(habit_description: Optional[str]) -> str:
    if not habit_description or not habit_description.strip():
        return ""
    return (
        f'\nThe user describes their habits as: "{habit_description.strip()}"\n'
        "Factor this into your answer.\n"
    )


def build_chat_prompt(
    message: str,
    footprint: Optional[FootprintSnapshot] = None,
    habit_description: Optional[str] = None,
) -> str:
    fp = footprint or FootprintSnapshot()
    previous_total = (
        f"{format_tons(fp.previousTotal)} tons" if fp.previousTotal is not None else "not available"
    )
    trend = describe_trend(fp.total, fp.previousTotal)

    prompt = f"""
You are an expert and friendly carbon footprint assistant. Your goal is to help users understand their carbon emissions and provide actionable advice to reduce them.

**User's Current Carbon Footprint Data** (tons CO2e per year):
- Transport: {format_tons(fp.transport)}
- Home Energy: {format_tons(fp.energy)}
- Diet: {format_tons(fp.diet)}
- Waste: {format_tons(fp.waste)}
- **Total**: {format_tons(fp.total)}

**Previous Footprint** (if available): {previous_total} (shows a {trend} trend)
{_habit_block(habit_description)}
**User's Question**: "{message}"

---

### Your Task
Answer the user's question based **only** on the provided data and general knowledge about carbon reduction. Follow these guidelines:

1. **Be friendly and encouraging** - use a warm, conversational tone.
2. **Be concise** - keep answers under 150 words unless the question requires more detail.
3. **Be specific and actionable** - refer to the user's own numbers. A value marked N/A was not provided; do not assume it is zero.
4. **If the question is about "how to reduce" or "where to improve"**:
   - Highlight the category with the highest emissions first.
   - Suggest 2-3 concrete changes with estimated savings (in tons/year).
   - Use bullet points for clarity.
5. **If the user asks for comparisons** (e.g., "How do I compare to average?"):
   - Provide context based on typical values (average US footprint is ~16 tons; average global is ~4 tons).
6. **If the question is unclear or unrelated to carbon footprints**, politely ask for clarification.
7. **Always end with a positive, motivating note.**

### Response Format
- Write in plain text (no markdown unless specifically requested by the user).
- Use emojis sparingly to add warmth.

Now, answer the user's question.
"""
    return prompt.strip()


def build_suggestions_prompt(request: SuggestionsRequest, audience: str) -> str:
    prompt = f"""
You are an expert sustainability coach for {audience}.
A user just calculated their annual carbon footprint:
- Transport: {format_tons(request.transport)} tons CO2
- Energy (Home): {format_tons(request.energy)} tons CO2
- Diet: {format_tons(request.diet)} tons CO2
- Waste: {format_tons(request.waste)} tons CO2
- Total: {format_tons(request.total)} tons CO2
{_habit_block(request.habitDescription)}
Based on this breakdown, provide exactly {SUGGESTION_COUNT} highly personalized, actionable suggestions.
Focus on their WORST categories first. Use local context (public transport, local diet, etc.).

IMPORTANT: Return ONLY a raw JSON array. No markdown, no explanation outside JSON.
Format:
[
    {{
        "title": "Short action title (max 8 words)",
        "description": "Practical explanation (2-3 sentences)",
        "impact": 0.5,
        "difficulty": "Easy"
    }}
]
The "impact" field must be a NUMBER (tons CO2 saved per year), not a string.
"difficulty" must be exactly one of: Easy, Medium, Hard
"""
    return prompt.strip()


def to_gemini_history(history: List[HistoryMessage], window: int = CHAT_HISTORY_WINDOW) -> List[dict]:
    """
    Convierte el historial del cliente al formato de turnos de Gemini.

    El primer mensaje es el saludo de la UI y se descarta. Se conservan los
    últimos `window` turnos y, como Gemini exige que el historial empiece con
    un turno del usuario, se eliminan los turnos iniciales del modelo.
    """
    turns = [
        {
            "role": "model" if msg.role == "assistant" else "user",
            "parts": [msg.content],
        }
        for msg in history[1:]
    ]
    turns = turns[-window:] if window > 0 else []
    while turns and turns[0]["role"] != "user":
        turns.pop(0)
    return turns
