"""
AI menu generation.

A request first writes a complete placeholder menu and activates it, so the
client can start using it right away. The meals are then rewritten day by
day from LLM output in a background task. Day 1 runs alone because it also
names the menu; the remaining days run in small concurrent batches and a
failing day only leaves its placeholders behind.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import anyio
from openai import OpenAI
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import LimitExceededError
from domain.models import RecommendedMeal, RecommendedMenu, SessionLocal
from domain.schemas.menu_schemas import GenerateMenuRequest
from repositories import MealRepository, MenuRepository, QuestionnaireRepository
from services import ai_service
from services.menu_service import (
    PLACEHOLDER_METHOD,
    activate_menu,
    build_ingredients,
    recalculate_totals,
    serialize_menu,
)
from services.questionnaire_service import meals_per_day
from services.user_service import UserService

logger = logging.getLogger("calo.menus.generation")

DAY_BATCH_SIZE = 3
MAX_DAYS = 30
GENERATION_TEMPERATURE = 0.8
GENERATION_MAX_TOKENS = 4096

PLACEHOLDER_INSTRUCTIONS = "AI is generating detailed recipe... Check back in a moment!"
FALLBACK_METHOD = "Simple preparation"
UNGENERATED_INSTRUCTIONS = "Recipe could not be generated. Tap Edit to customize this meal."
FAILED_INSTRUCTIONS = (
    "Recipe details could not be generated. You can edit this meal to add your own instructions."
)

PLACEHOLDER_MEAL_TYPES = ["BREAKFAST", "LUNCH", "DINNER"]
PLACEHOLDER_MACROS = {
    # calories, protein, carbs, fat
    "BREAKFAST": (400, 20, 50, 15),
    "LUNCH": (600, 35, 60, 20),
    "DINNER": (700, 40, 70, 25),
}
MEAL_DEFAULTS = {
    "calories": 500,
    "protein": 25,
    "carbs": 50,
    "fat": 20,
    "prep_time_minutes": 30,
    "cooking_method": "Mixed cooking",
}

CUISINE_LABELS = {
    "mediterranean": "Mediterranean",
    "asian": "Asian Fusion",
    "american": "American Classic",
    "italian": "Italian",
    "mexican": "Mexican",
    "indian": "Indian",
    "japanese": "Japanese",
    "middle_eastern": "Middle Eastern",
    "french": "French",
}
DIFFICULTY_LEVELS = {"easy": 1, "hard": 3}
COOKING_STYLES = [
    "grilled", "baked", "stir-fried", "steamed", "roasted",
    "sauteed", "poached", "braised", "pan-seared", "slow-cooked",
]

HEBREW_RE = re.compile(r"[\u0590-\u05FF]")


@dataclass
class GenerationContext:
    """Everything the background job needs; no ORM objects cross threads."""

    menu_id: UUID
    user_id: UUID
    days: int
    language: str
    cuisine: Optional[str] = None
    dietary_restrictions: List[str] = field(default_factory=list)
    cooking_difficulty: Optional[str] = None
    budget_range: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    custom_name: Optional[str] = None
    profile: Dict[str, Any] = field(default_factory=dict)
    # day number -> meal types of that day
    slots: Dict[int, List[str]] = field(default_factory=dict)


def detect_language(ingredients: List[str]) -> str:
    return "hebrew" if any(HEBREW_RE.search(name or "") for name in ingredients) else "english"


def menu_title(cuisine: Optional[str], days: int, custom_name: Optional[str] = None) -> str:
    if custom_name and custom_name.strip():
        return custom_name.strip()
    return f"{cuisine_label(cuisine)} {days}-Day Plan"


def cuisine_label(cuisine: Optional[str]) -> str:
    return CUISINE_LABELS.get((cuisine or "").lower(), "Custom")


def build_placeholder_meals(days: int, meal_count: int, dietary_tags: List[str], language: str) -> List[RecommendedMeal]:
    meals = []
    for day in range(1, days + 1):
        for meal_type in PLACEHOLDER_MEAL_TYPES[:meal_count]:
            calories, protein, carbs, fat = PLACEHOLDER_MACROS[meal_type]
            meals.append(
                RecommendedMeal(
                    name=f"{meal_type.capitalize()} - Day {day}",
                    meal_type=meal_type,
                    day_number=day,
                    calories=calories,
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                    prep_time_minutes=30,
                    cooking_method=PLACEHOLDER_METHOD,
                    instructions=PLACEHOLDER_INSTRUCTIONS,
                    language=language,
                    dietary_tags=list(dietary_tags),
                )
            )
    return meals


def build_day_prompt(context: GenerationContext, day: int) -> str:
    offset = (day - 1) * 2 % len(COOKING_STYLES)
    styles = ", ".join(COOKING_STYLES[offset : offset + 3])
    restrictions = ", ".join(context.dietary_restrictions) or "None"
    lines = [
        f"Create DAY {day} of a {context.days}-day {context.cuisine or 'mixed'} meal plan.",
        "",
        "REQUIREMENTS:",
        f"- Cuisine: {context.cuisine or 'mixed'}",
        f"- Dietary restrictions: {restrictions}",
        f"- Difficulty: {context.cooking_difficulty or 'easy'}",
        f"- Budget: {context.budget_range or 'moderate'}",
        f"- Language: {context.language}",
    ]
    if day == 1:
        lines.append(
            f"- Menu name: {context.custom_name}"
            if context.custom_name
            else f"- Menu name: create a catchy 2-3 word name in {context.language}"
        )
    if context.profile:
        lines += [
            "",
            "USER: "
            + ", ".join(f"{k.replace('_', ' ')}: {v}" for k, v in context.profile.items() if v),
        ]
    lines += ["", f"Generate EXACTLY these meals for day {day}:"]
    lines += [f"- {meal_type}" for meal_type in context.slots.get(day, [])]
    lines += [
        "",
        f"Available ingredients: {', '.join(context.ingredients)}"
        if context.ingredients
        else "Suggest fresh, affordable ingredients.",
        "",
        "VARIETY:",
        f"- Day {day} of {context.days} must feel different from the other days",
        f"- Preferred cooking methods today: {styles}",
        "- Vary proteins, grains and vegetables; avoid plain chicken and rice",
        "",
        "RECIPE RULES:",
        "- 4-8 numbered cooking steps per meal with temperatures and times",
        "- Every ingredient needs an estimated_cost at realistic local supermarket prices",
        "",
        "Respond in this JSON format:",
        "{",
    ]
    if day == 1:
        lines += ['  "menu_name": "Catchy name",', '  "description": "1-2 sentence description",']
    lines += [
        '  "meals": [',
        "    {",
        '      "name": "Creative appetizing name",',
        '      "meal_type": "BREAKFAST|LUNCH|DINNER|SNACK",',
        f'      "day_number": {day},',
        '      "calories": <number>, "protein": <grams>, "carbs": <grams>, "fat": <grams>,',
        '      "prep_time_minutes": <number>,',
        '      "cooking_method": "Specific method",',
        '      "instructions": "1. ...\\n2. ...",',
        '      "dietary_tags": [],',
        '      "ingredients": [{"name": "...", "quantity": <number>, "unit": "g|ml|piece|tbsp",'
        ' "category": "protein|vegetable|grain|dairy|fruit|spice|fat", "estimated_cost": <number>}]',
        "    }",
        "  ]",
        "}",
    ]
    return "\n".join(lines)


def _system_prompt(meal_total: int) -> str:
    return (
        "You are an award-winning chef. Create diverse, restaurant-quality recipes. "
        f"Return ONLY valid JSON. You MUST generate exactly {meal_total} meals. "
        "Every ingredient MUST have a realistic estimated_cost. Make each meal unique."
    )


def _number(value: Any, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def apply_day_meals(db: Session, menu_id: UUID, day: int, ai_meals: List[Dict[str, Any]]) -> int:
    """Write AI meals over the placeholders of one day. Returns meals updated."""
    placeholders = [
        m
        for m in MealRepository(db).list_by_cooking_method(menu_id, PLACEHOLDER_METHOD)
        if m.day_number == day
    ]
    by_type: Dict[str, List[RecommendedMeal]] = {}
    for meal in placeholders:
        by_type.setdefault(meal.meal_type, []).append(meal)

    updated = 0
    for ai_meal in ai_meals:
        if not isinstance(ai_meal, dict):
            continue
        candidates = by_type.get(str(ai_meal.get("meal_type") or "").upper())
        if not candidates:
            continue
        meal = candidates.pop(0)
        meal.name = str(ai_meal.get("name") or meal.name)
        for key in ("calories", "protein", "carbs", "fat"):
            setattr(meal, key, _number(ai_meal.get(key), MEAL_DEFAULTS[key]))
        meal.prep_time_minutes = int(
            _number(ai_meal.get("prep_time_minutes"), MEAL_DEFAULTS["prep_time_minutes"])
        )
        meal.cooking_method = str(ai_meal.get("cooking_method") or MEAL_DEFAULTS["cooking_method"])
        meal.instructions = str(ai_meal.get("instructions") or "")
        tags = ai_meal.get("dietary_tags")
        if isinstance(tags, list) and tags:
            meal.dietary_tags = [str(t) for t in tags]
        meal.ingredients = build_ingredients(
            i for i in (ai_meal.get("ingredients") or []) if isinstance(i, dict)
        )
        updated += 1

    db.commit()
    return updated


def clear_placeholder_state(db: Session, menu_id: UUID, instructions: str = FAILED_INSTRUCTIONS) -> int:
    """Turn every remaining placeholder meal of a menu into an editable plain meal."""
    meals = MealRepository(db).list_by_cooking_method(menu_id, PLACEHOLDER_METHOD)
    for meal in meals:
        meal.cooking_method = FALLBACK_METHOD
        meal.instructions = instructions
    db.commit()
    if meals:
        logger.info("Cleared %d placeholder meals for menu %s", len(meals), menu_id)
    return len(meals)


def finalize_menu(db: Session, menu_id: UUID, title: Optional[str], description: Optional[str]) -> Optional[RecommendedMenu]:
    menu = MenuRepository(db).get_by_id(menu_id)
    if menu is None:
        logger.warning("Menu %s disappeared during generation", menu_id)
        return None
    clear_placeholder_state(db, menu_id, UNGENERATED_INSTRUCTIONS)
    db.refresh(menu)
    recalculate_totals(menu)
    if title:
        menu.title = title
    if description:
        menu.description = description
    db.commit()
    return menu


class MenuGenerationService:
    """Placeholder-then-enhance menu generation"""

    @staticmethod
    def create_placeholder_menu(
        db: Session, user_id: UUID, request: GenerateMenuRequest
    ) -> Tuple[RecommendedMenu, GenerationContext]:
        """Write and activate a placeholder menu; returns it with the job context."""
        user = UserService.get_user(db, user_id)

        menu_repo = MenuRepository(db)
        existing = menu_repo.count_for_user(user_id)
        if existing >= settings.max_menus_per_user:
            raise LimitExceededError(
                f"You can keep up to {settings.max_menus_per_user} menus. "
                "Delete an existing menu to create a new one.",
                details={"menu_count": existing, "max_menus": settings.max_menus_per_user},
                code="MENU_LIMIT_REACHED",
            )

        days = max(1, min(request.days or 7, MAX_DAYS))
        questionnaire = QuestionnaireRepository(db).get_latest(user_id)
        meal_count = request.meal_count or min(meals_per_day(questionnaire), len(PLACEHOLDER_MEAL_TYPES))
        language = detect_language(request.ingredients)
        title = menu_title(request.cuisine, days, request.custom_name)

        meals = build_placeholder_meals(days, meal_count, request.dietary_restrictions, language)
        menu = RecommendedMenu(
            user_id=user_id,
            title=title,
            description=f"{cuisine_label(request.cuisine)} cuisine menu being personalized by AI...",
            days_count=days,
            estimated_cost=0,
            prep_time_minutes=30,
            difficulty_level=DIFFICULTY_LEVELS.get((request.cooking_difficulty or "").lower(), 2),
            meals=meals,
        )
        db.add(menu)
        db.flush()
        recalculate_totals(menu)
        activate_menu(db, user, menu)
        db.commit()
        db.refresh(menu)

        profile = {}
        if questionnaire is not None:
            profile = {
                "age": questionnaire.age,
                "main_goal": questionnaire.main_goal,
                "activity": questionnaire.physical_activity_level,
            }

        slots: Dict[int, List[str]] = {}
        for meal in meals:
            slots.setdefault(meal.day_number, []).append(meal.meal_type)

        context = GenerationContext(
            menu_id=menu.menu_id,
            user_id=user_id,
            days=days,
            language=language,
            cuisine=request.cuisine,
            dietary_restrictions=list(request.dietary_restrictions),
            cooking_difficulty=request.cooking_difficulty,
            budget_range=request.budget_range,
            ingredients=list(request.ingredients),
            custom_name=request.custom_name.strip() if request.custom_name else None,
            profile=profile,
            slots=slots,
        )
        logger.info(
            "Menu created instantly: %s with %d placeholder meals", menu.menu_id, len(meals)
        )
        return menu, context

    @staticmethod
    def placeholder_response(menu: RecommendedMenu) -> Dict[str, Any]:
        data = serialize_menu(menu)
        data.update(
            {
                "plan_id": data["menu_id"],
                "menu_name": menu.title,
                "name": menu.title,
                "is_generating": True,
            }
        )
        return data

    @staticmethod
    def generate_day(client: OpenAI, context: GenerationContext, day: int) -> Dict[str, Any]:
        """Generate and store one day; returns menu name/description from day 1."""
        meal_types = context.slots.get(day, [])
        if not meal_types:
            return {}

        logger.info("Generating day %d/%d: %s", day, context.days, ", ".join(meal_types))
        parsed = ai_service.chat_json(
            _system_prompt(len(meal_types)),
            build_day_prompt(context, day),
            temperature=GENERATION_TEMPERATURE,
            max_tokens=GENERATION_MAX_TOKENS,
            client=client,
        )
        ai_meals = parsed.get("meals") or []
        if not isinstance(ai_meals, list) or not ai_meals:
            raise ValueError("No meals in response")

        db = SessionLocal()
        try:
            updated = apply_day_meals(db, context.menu_id, day, ai_meals)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.info("Day %d: updated %d meals", day, updated)

        if day == 1:
            return {
                "menu_name": parsed.get("menu_name"),
                "description": parsed.get("description"),
            }
        return {}

    @staticmethod
    def _run_cleanup(menu_id: UUID, instructions: str = FAILED_INSTRUCTIONS) -> None:
        db = SessionLocal()
        try:
            clear_placeholder_state(db, menu_id, instructions)
        except Exception:
            db.rollback()
            logger.exception("Failed to clear placeholder state for menu %s", menu_id)
        finally:
            db.close()

    @staticmethod
    def _finalize(context: GenerationContext, header: Dict[str, Any]) -> List[Tuple[UUID, str]]:
        title = context.custom_name or (str(header["menu_name"]) if header.get("menu_name") else None)
        description = str(header["description"]) if header.get("description") else None
        db = SessionLocal()
        try:
            menu = finalize_menu(db, context.menu_id, title, description)
            if menu is None:
                return []
            return [(m.meal_id, m.name) for m in menu.meals if " - Day " not in m.name]
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _attach_image(client: OpenAI, meal_id: UUID, name: str) -> None:
        url = ai_service.generate_image(
            f"Appetizing professional food photograph of {name}, plated, natural light",
            client=client,
        )
        if not url:
            return
        db = SessionLocal()
        try:
            meal = MealRepository(db).get_by_id(meal_id)
            if meal is not None:
                meal.image_url = url
                db.commit()
        finally:
            db.close()

    @staticmethod
    async def enhance_menu(context: GenerationContext) -> None:
        """Background job: replace placeholders with generated recipes."""
        client = ai_service.get_openai_client()
        if client is None:
            logger.warning("OpenAI API key not set; keeping simple meals for menu %s", context.menu_id)
            await anyio.to_thread.run_sync(MenuGenerationService._run_cleanup, context.menu_id)
            return

        async def run_day(day: int, results: Dict[int, Dict[str, Any]]) -> None:
            try:
                results[day] = await anyio.to_thread.run_sync(
                    MenuGenerationService.generate_day, client, context, day
                )
            except Exception as e:
                logger.error("Day %d generation failed for menu %s: %s", day, context.menu_id, e)

        try:
            logger.info("Starting AI enhancement for menu %s (%d days)", context.menu_id, context.days)
            results: Dict[int, Dict[str, Any]] = {}
            await run_day(1, results)

            remaining = list(range(2, context.days + 1))
            for i in range(0, len(remaining), DAY_BATCH_SIZE):
                async with anyio.create_task_group() as tg:
                    for day in remaining[i : i + DAY_BATCH_SIZE]:
                        tg.start_soon(run_day, day, results)

            image_targets = await anyio.to_thread.run_sync(
                MenuGenerationService._finalize, context, results.get(1, {})
            )
            logger.info(
                "AI enhancement complete for menu %s: %d/%d days generated",
                context.menu_id,
                len(results),
                context.days,
            )

            if settings.generate_meal_images:
                for meal_id, name in image_targets:
                    await anyio.to_thread.run_sync(
                        MenuGenerationService._attach_image, client, meal_id, name
                    )
        except Exception:
            logger.exception("AI enhancement failed for menu %s", context.menu_id)
            await anyio.to_thread.run_sync(MenuGenerationService._run_cleanup, context.menu_id)
