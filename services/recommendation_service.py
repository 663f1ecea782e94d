"""
Daily AI recommendations.

Once a day every user gets nutrition tips built from their last week of
completed meals, yesterday's meal log and their questionnaire profile. When
the model is unreachable or replies with the wrong shape a generic set of
tips is stored instead.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import timedelta
from typing import Any, Dict, List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import start_of_day, utcnow
from app.exceptions import NotFoundError
from domain.models import DailyRecommendation, SessionLocal
from repositories import (
    CompletionRepository,
    MealLogRepository,
    QuestionnaireRepository,
    RecommendationRepository,
    UserRepository,
)
from services import ai_service
from services.user_service import UserService

logger = logging.getLogger("calo.recommendations")

RECOMMENDATION_TEMPERATURE = 0.7
RECOMMENDATION_MAX_TOKENS = 1500
MAX_LIST_LIMIT = 30
LIST_FIELDS = ("nutrition_tips", "meal_suggestions", "goal_adjustments", "behavioral_insights")
PRIORITY_LEVELS = ("low", "medium", "high")

FALLBACK_RECOMMENDATIONS: Dict[str, Any] = {
    "nutrition_tips": [
        "Stay hydrated by drinking 8-10 glasses of water daily",
        "Include a variety of colorful vegetables in your meals",
        "Aim for lean protein sources like chicken, fish, or legumes",
    ],
    "meal_suggestions": [
        "Start your day with a protein-rich breakfast",
        "Include fiber-rich foods to help you feel full longer",
    ],
    "goal_adjustments": [
        "Track your meals consistently for better insights",
        "Focus on portion control for better goal achievement",
    ],
    "behavioral_insights": [
        "Consistency in meal timing can improve your results",
        "Planning meals ahead helps maintain nutritional balance",
    ],
    "priority_level": "medium",
    "confidence_score": 0.6,
    "key_focus_areas": ["hydration", "protein_intake", "consistency"],
}

SYSTEM_PROMPT = (
    "You are a professional nutritionist. Analyze the user's data and reply "
    "with one JSON object of specific, actionable and encouraging advice."
)


def is_valid_recommendation(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and all(isinstance(data.get(field), list) for field in LIST_FIELDS)
        and isinstance(data.get("priority_level"), str)
        and isinstance(data.get("confidence_score"), (int, float))
    )


def build_prompt(performance: Dict[str, Any], profile: Dict[str, Any]) -> str:
    return (
        "USER DATA:\n"
        f"- Last 7 days: {json.dumps(performance)}\n"
        f"- Profile: {json.dumps(profile)}\n\n"
        "Focus on goal achievement patterns, nutritional gaps, consistency and "
        "realistic improvements.\n\n"
        "Return JSON in this format:\n"
        '{"nutrition_tips": ["..."], "meal_suggestions": ["..."], '
        '"goal_adjustments": ["..."], "behavioral_insights": ["..."], '
        '"priority_level": "low|medium|high", "confidence_score": 0.85, '
        '"key_focus_areas": ["..."]}'
    )


class RecommendationService:
    """Generate, list and mark daily recommendations"""

    @staticmethod
    def user_context(db: Session, user_id: UUID) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """(recent performance, profile) fed to the model"""
        user = UserService.get_user(db, user_id)
        now = utcnow()
        today = start_of_day(now)
        yesterday = today - timedelta(days=1)

        completions = CompletionRepository(db).list_between(user_id, now - timedelta(days=7))
        ratings = [c.rating for c in completions if c.rating]
        yesterday_meals = [
            m for m in MealLogRepository(db).list_since(user_id, yesterday) if m.upload_time < today
        ]
        performance = {
            "meals_completed": len(completions),
            "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else None,
            "calories_completed": round(sum(c.calories or 0 for c in completions)),
            "yesterday_meals_logged": len(yesterday_meals),
            "yesterday_calories": round(sum(m.calories or 0 for m in yesterday_meals)),
            "current_streak": user.current_streak or 0,
        }

        questionnaire = QuestionnaireRepository(db).get_latest(user_id)
        profile: Dict[str, Any] = {"language": user.preferred_lang}
        if questionnaire is not None:
            profile.update(
                main_goal=questionnaire.main_goal or "WEIGHT_MAINTENANCE",
                activity_level=questionnaire.physical_activity_level or "MODERATE",
                dietary_style=questionnaire.dietary_style,
                age=questionnaire.age,
                weight_kg=questionnaire.weight_kg,
                allergies=questionnaire.allergies or [],
            )
        return performance, profile

    @staticmethod
    def request_recommendations(performance: Dict[str, Any], profile: Dict[str, Any]) -> Dict[str, Any]:
        if not ai_service.is_available():
            return copy.deepcopy(FALLBACK_RECOMMENDATIONS)
        try:
            parsed = ai_service.chat_json(
                SYSTEM_PROMPT,
                build_prompt(performance, profile),
                temperature=RECOMMENDATION_TEMPERATURE,
                max_tokens=RECOMMENDATION_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("Recommendation request failed, using fallback: %s", e)
            return copy.deepcopy(FALLBACK_RECOMMENDATIONS)
        if not is_valid_recommendation(parsed):
            logger.warning("Recommendation reply is missing required fields, using fallback")
            return copy.deepcopy(FALLBACK_RECOMMENDATIONS)
        return parsed

    @staticmethod
    def generate_for_user(db: Session, user_id: UUID) -> DailyRecommendation:
        """Create or refresh today's recommendation for one user."""
        performance, profile = RecommendationService.user_context(db, user_id)
        data = RecommendationService.request_recommendations(performance, profile)

        priority = data.get("priority_level")
        if priority not in PRIORITY_LEVELS:
            priority = "medium"
        confidence = float(data.get("confidence_score") or 0.75)

        repo = RecommendationRepository(db)
        today = utcnow().date()
        recommendation = repo.get_for_day(user_id, today)
        if recommendation is None:
            recommendation = DailyRecommendation(user_id=user_id, date=today)
            db.add(recommendation)
        recommendation.recommendations = data
        recommendation.priority_level = priority
        recommendation.confidence_score = confidence
        recommendation.is_read = False

        db.commit()
        db.refresh(recommendation)
        logger.info(f"recommendation_generated user_id={user_id} priority={priority}")
        return recommendation

    @staticmethod
    def list_recommendations(db: Session, user_id: UUID, limit: int = 7) -> List[DailyRecommendation]:
        UserService.get_user(db, user_id)
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        return RecommendationRepository(db).list_for_user(user_id, limit)

    @staticmethod
    def mark_read(db: Session, user_id: UUID, recommendation_id: UUID) -> DailyRecommendation:
        recommendation = RecommendationRepository(db).get_for_user(recommendation_id, user_id)
        if recommendation is None:
            raise NotFoundError("Recommendation not found")
        recommendation.is_read = True
        db.commit()
        db.refresh(recommendation)
        return recommendation

    @staticmethod
    def generate_for_all_users(db: Session) -> Dict[str, Any]:
        """Daily job body. Users that already have today's row are left alone."""
        if ai_service.get_openai_client() is None:
            logger.info("OpenAI API key not set; skipping daily recommendations")
            return {"skipped": True, "generated": 0, "existing": 0, "failed": 0}

        repo = RecommendationRepository(db)
        today = utcnow().date()
        generated = existing = failed = 0
        for user in UserRepository(db).get_all(limit=None):
            if repo.get_for_day(user.user_id, today) is not None:
                existing += 1
                continue
            try:
                RecommendationService.generate_for_user(db, user.user_id)
                generated += 1
            except Exception:
                db.rollback()
                failed += 1
                logger.exception(f"Recommendation generation failed for user {user.user_id}")

        logger.info(f"daily_recommendations generated={generated} existing={existing} failed={failed}")
        return {"skipped": False, "generated": generated, "existing": existing, "failed": failed}


def run_daily_recommendations() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return RecommendationService.generate_for_all_users(db)
    finally:
        db.close()
