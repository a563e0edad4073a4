"""Deterministic responses used when the generation endpoint is unavailable.

Every rule list is evaluated top-down and the first matching rule wins.
None of these functions perform I/O or raise.
"""

import re

from macro_coach.domain.coach import CoachResponse, Greeting, ToolResult
from macro_coach.domain.context import ContextSnapshot, MessageCategory, TimeOfDay
from macro_coach.domain.nutrition import FoodSuggestion
from macro_coach.services.tools import ToolName

HUNGER_KEYWORDS = frozenset(
    {"hungry", "starving", "eat", "eating", "snack", "food", "meal", "craving"}
)
STATUS_KEYWORDS = frozenset(
    {"progress", "left", "remaining", "status", "macros", "streak"}
)

GOAL_COMPLETE_PERCENT = 100
NEAR_GOAL_PERCENT = 80
LONG_STREAK_DAYS = 7
TIME_PRESSURE_PERCENT = 50
TIME_PRESSURE_HOUR = 18
SUMMARY_FOOD_COUNT = 3

ISSUE_TEXT = "I apologize, I encountered an issue. Please try again."
NEED_SPECIFIC_TEXT = (
    "I found some information for you but need to summarize. "
    "Please try a more specific question."
)
GENERIC_TOOL_TEXT = "I found some information. How can I help you further?"

_WORD_RE = re.compile(r"[a-z']+")


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def _keywords(message: str) -> set[str]:
    return set(_WORD_RE.findall(message.lower()))


def chat_fallback(message: str, ctx: ContextSnapshot) -> CoachResponse:
    """Answer a chat message from the context snapshot alone."""
    words = _keywords(message)
    calories = _fmt(ctx.calories_remaining)
    if words & HUNGER_KEYWORDS:
        return CoachResponse(
            text=(
                f"You have {calories} calories remaining. I recommend a "
                "high-protein option to stay on target. What are you in the mood for?"
            )
        )
    if words & STATUS_KEYWORDS:
        return CoachResponse(
            text=(
                f"You're at {ctx.progress_percent}% of your daily goal. "
                f"You have **{calories} calories** remaining "
                f"(P: {_fmt(ctx.protein_remaining)}g, C: {_fmt(ctx.carbs_remaining)}g, "
                f"F: {_fmt(ctx.fat_remaining)}g). "
                f"Your streak is at **{ctx.current_streak} days**. Keep pushing!"
            )
        )
    return CoachResponse(
        text=(
            f"I'm here to help you hit your macros. You have **{calories} cal** and "
            f"**{_fmt(ctx.protein_remaining)}g protein** remaining. "
            "Want me to suggest some high-protein options?"
        )
    )


def greeting_fallback(ctx: ContextSnapshot) -> Greeting:
    """Pick a greeting by priority: first open, goal, streak, time pressure."""
    name = f", {ctx.display_name}" if ctx.display_name else ""
    if ctx.is_first_open_today:
        return Greeting(lead=f"Welcome back{name}!", emphasis="Ready to transform.")
    if ctx.progress_percent >= GOAL_COMPLETE_PERCENT:
        return Greeting(lead=f"Goal achieved{name}!", emphasis="Hold the line.")
    if ctx.progress_percent >= NEAR_GOAL_PERCENT:
        return Greeting(
            lead="Almost there!",
            emphasis=f"{_fmt(ctx.calories_remaining)} kcal to go.",
        )
    if ctx.current_streak >= LONG_STREAK_DAYS:
        return Greeting(
            lead=f"{ctx.current_streak} day streak!",
            emphasis="Legendary consistency.",
        )
    if (
        ctx.progress_percent < TIME_PRESSURE_PERCENT
        and ctx.hour >= TIME_PRESSURE_HOUR
    ):
        return Greeting(
            lead="Time is running!",
            emphasis=f"{_fmt(ctx.calories_remaining)} kcal left. Log something now.",
        )
    return _TIME_GREETINGS[ctx.time_of_day](name)


_TIME_GREETINGS = {
    TimeOfDay.MORNING: lambda name: Greeting(
        lead=f"Good morning{name}!", emphasis="Start strong today."
    ),
    TimeOfDay.AFTERNOON: lambda name: Greeting(
        lead=f"Keep pushing{name}!", emphasis="Afternoon momentum."
    ),
    TimeOfDay.EVENING: lambda name: Greeting(
        lead=f"Evening check-in{name}!", emphasis="Finish strong."
    ),
    TimeOfDay.NIGHT: lambda name: Greeting(
        lead=f"Night owl mode{name}!", emphasis="Rest well soon."
    ),
}


def insight_fallback(ctx: ContextSnapshot) -> str:
    """Pick the most pressing one-line insight."""
    if ctx.protein_consumed < ctx.protein_target * 0.5 and ctx.hour >= 14:
        return "Protein intake is low. Consider a high-protein meal."
    if ctx.sleep_hours is not None and ctx.sleep_hours < 6:
        return "Sleep debt detected. Prioritize recovery today."
    if ctx.progress_percent >= GOAL_COMPLETE_PERCENT:
        return "Daily goal complete. Maintain or ease into recovery."
    if ctx.progress_percent >= NEAR_GOAL_PERCENT:
        return (
            f"Great progress! Only {_fmt(ctx.calories_remaining)} calories remaining."
        )
    if ctx.logs_today == 0 and ctx.hour >= 10:
        return "No logs yet today. Start tracking to stay on target."
    if ctx.current_streak >= 3:
        return f"{ctx.current_streak} day streak! Consistency is your superpower."
    return "Tracking on point. Keep the momentum."


def recommendation_fallback(ctx: ContextSnapshot) -> str:
    """Pick one actionable recommendation."""
    if ctx.time_of_day == TimeOfDay.MORNING and ctx.logs_today == 0:
        return "Log your breakfast to start the day right."
    if ctx.protein_consumed < ctx.protein_target * 0.4:
        return "Focus on protein intake for your next meal."
    if ctx.sleep_hours is not None and ctx.sleep_hours < 6:
        return "Prioritize rest. Consider a power nap."
    if 0 < ctx.calories_remaining < 300:
        return "Light snack time. Keep it balanced."
    if ctx.time_of_day == TimeOfDay.EVENING:
        return "Wind down with a light protein snack."
    return "Stay hydrated and keep moving."


def summary_fallback(ctx: ContextSnapshot) -> str:
    """Summarize the day so far."""
    return (
        f"{ctx.logs_today} logs today, {ctx.progress_percent}% of your calorie goal. "
        f"{_fmt(ctx.calories_remaining)} kcal and "
        f"{_fmt(ctx.protein_remaining)}g protein left. "
        f"Streak: {ctx.current_streak} days."
    )


def category_fallback(category: str, ctx: ContextSnapshot) -> str:
    """Return the fallback message for a category as a cacheable string."""
    if category == MessageCategory.GREETING:
        return greeting_fallback(ctx).model_dump_json()
    if category == MessageCategory.INSIGHT:
        return insight_fallback(ctx)
    if category == MessageCategory.RECOMMENDATION:
        return recommendation_fallback(ctx)
    return summary_fallback(ctx)


def summarize_tool_result(
    tool_name: str,
    result: ToolResult,
    tools_used: list[str],
    foods_suggested: list[FoodSuggestion] | None = None,
) -> CoachResponse:
    """Describe a tool result when the model cannot respond to it."""
    foods = list(foods_suggested or [])
    summarizer = _SUMMARIZERS.get(tool_name)
    if summarizer is None:
        text = GENERIC_TOOL_TEXT
    elif not result.success:
        text = (
            f"I tried to help but encountered an issue: {result.error}. "
            "Please try again."
        )
    else:
        text = summarizer(result.data or {})
    return CoachResponse(text=text, tools_used=list(tools_used), foods_suggested=foods)


def _summarize_search(data: dict) -> str:
    foods = data.get("foods") or []
    if not foods:
        return (
            "I searched the database but couldn't find foods matching those "
            "criteria. Try adjusting your filters."
        )
    lines = "\n".join(
        f"• **{food.get('name')}** - {food.get('calories')} cal "
        f"(P: {food.get('protein')}g)"
        for food in foods[:SUMMARY_FOOD_COUNT]
    )
    return (
        f"Here are the best options I found:\n\n{lines}\n\n"
        "Want me to log one of these?"
    )


def _summarize_status(data: dict) -> str:
    return (
        "**Your Status:**\n"
        f"• {data.get('caloriesRemaining')} cal remaining\n"
        f"• {data.get('proteinRemaining')}g protein to go\n"
        f"• Streak: {data.get('currentStreak')} days\n"
        f"• Progress: {data.get('todayProgress')}%"
    )


def _summarize_log(data: dict) -> str:
    nutrition = data.get("nutrition") or {}
    return (
        f"✅ Logged **{data.get('food')}** ({data.get('portion')}): "
        f"{nutrition.get('calories')} cal, {nutrition.get('protein')}g protein."
    )


def _summarize_details(data: dict) -> str:
    macros = data.get("macros") or {}
    return (
        f"**{data.get('name')}** (per {data.get('servingSize')}):\n"
        f"• Calories: {macros.get('calories')}\n"
        f"• Protein: {macros.get('protein')}g\n"
        f"• Carbs: {macros.get('carbs')}g\n"
        f"• Fat: {macros.get('fat')}g"
    )


def _summarize_knowledge(data: dict) -> str:
    return f"{data.get('message')} {data.get('disclaimer')}"


_SUMMARIZERS = {
    ToolName.SEARCH_FOOD_DATABASE: _summarize_search,
    ToolName.GET_USER_STATUS: _summarize_status,
    ToolName.LOG_VERIFIED_FOOD: _summarize_log,
    ToolName.GET_FOOD_DETAILS: _summarize_details,
    ToolName.SEARCH_VERIFIED_FITNESS_KNOWLEDGE: _summarize_knowledge,
}
