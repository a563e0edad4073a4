"""Prompt builders for coach chat and dashboard messages."""

from macro_coach.domain.context import ContextSnapshot, MessageCategory

COACH_PERSONA = """You are MyMacro Coach, a performance nutrition coach.
Tone: precise, data-driven, encouraging. No fluff.
Rules:
1. Before suggesting any food, call search_food_database; never invent nutrition values.
2. Use get_user_status when you need live remaining macros.
3. Ask the user to confirm before calling log_verified_food.
4. Call search_verified_fitness_knowledge before discussing supplements or compounds.
5. Keep answers to 2-3 sentences unless asked for detail.
6. Use **bold** for food names and key numbers.
7. Show macros as (P: 20g, C: 5g, F: 8g)."""

MESSAGE_SYSTEM_PROMPT = (
    "You are a concise fitness coach writing short dashboard messages. "
    "Follow the output format exactly."
)


def _fmt(value: float) -> str:
    return str(round(value))


def build_chat_system_prompt(ctx: ContextSnapshot) -> str:
    """Return the chat persona followed by the current user status."""
    lines = [
        "## CURRENT USER STATUS",
        f"- Calories remaining: {_fmt(ctx.calories_remaining)} kcal",
        f"- Protein remaining: {_fmt(ctx.protein_remaining)}g",
        f"- Carbs remaining: {_fmt(ctx.carbs_remaining)}g",
        f"- Fats remaining: {_fmt(ctx.fat_remaining)}g",
        f"- Today's progress: {ctx.progress_percent}%",
        f"- Current streak: {ctx.current_streak} days",
    ]
    if ctx.sleep_hours is not None:
        lines.append(f"- Last night's sleep: {ctx.sleep_hours}h")
    if ctx.last_log_name:
        lines.append(f"- Last meal: {ctx.last_log_name}")
    lines.append(f"- Time of day: {ctx.time_of_day}")
    return f"{COACH_PERSONA}\n\n" + "\n".join(lines)


def build_message_prompt(category: str, ctx: ContextSnapshot) -> str:
    """Return the user prompt for a dashboard message category."""
    builder = _MESSAGE_PROMPTS.get(category, _summary_prompt)
    return builder(ctx)


def _greeting_prompt(ctx: ContextSnapshot) -> str:
    sleep = f"\n- Sleep last night: {ctx.sleep_hours}h" if ctx.sleep_hours else ""
    return f"""Generate a personalized greeting.

CONTEXT:
- Time: {ctx.time_of_day} ({ctx.hour}:00)
- First open today: {ctx.is_first_open_today}
- User name: {ctx.display_name or "Warrior"}
- Progress: {ctx.progress_percent}% of daily calorie goal
- Calories: {_fmt(ctx.calories_consumed)} / {_fmt(ctx.calories_target)}
- Logs today: {ctx.logs_today}
- Streak: {ctx.current_streak} days{sleep}

Return ONLY valid JSON: {{"lead": "short greeting", "emphasis": "action phrase"}}"""


def _insight_prompt(ctx: ContextSnapshot) -> str:
    strain = f"\n- Strain: {ctx.strain}/21" if ctx.strain else ""
    sleep = f"\n- Sleep: {ctx.sleep_hours}h" if ctx.sleep_hours else ""
    return f"""Generate one health insight of at most 15 words.

CONTEXT:
- Calories: {_fmt(ctx.calories_consumed)}/{_fmt(ctx.calories_target)}
- Protein: {_fmt(ctx.protein_consumed)}g/{_fmt(ctx.protein_target)}g
- Carbs: {_fmt(ctx.carbs_consumed)}g/{_fmt(ctx.carbs_target)}g
- Fats: {_fmt(ctx.fat_consumed)}g/{_fmt(ctx.fat_target)}g{sleep}{strain}

Return ONLY the insight text."""


def _recommendation_prompt(ctx: ContextSnapshot) -> str:
    return f"""Give one actionable recommendation of at most 12 words.

CONTEXT:
- Time: {ctx.time_of_day}
- Remaining calories: {_fmt(ctx.calories_remaining)}
- Protein so far: {_fmt(ctx.protein_consumed)}g (target {_fmt(ctx.protein_target)}g)
- Logs today: {ctx.logs_today}

Return ONLY the recommendation text."""


def _summary_prompt(ctx: ContextSnapshot) -> str:
    return f"""Summarize the user's day in two sentences.

CONTEXT:
- Logs today: {ctx.logs_today}
- Progress: {ctx.progress_percent}%
- Remaining: {_fmt(ctx.calories_remaining)} kcal, {_fmt(ctx.protein_remaining)}g protein
- Streak: {ctx.current_streak} days (best {ctx.longest_streak})

Return ONLY the summary text."""


_MESSAGE_PROMPTS = {
    MessageCategory.GREETING: _greeting_prompt,
    MessageCategory.INSIGHT: _insight_prompt,
    MessageCategory.RECOMMENDATION: _recommendation_prompt,
    MessageCategory.SUMMARY: _summary_prompt,
}
