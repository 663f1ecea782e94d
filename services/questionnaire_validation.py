"""
Moderation of open-text questionnaire answers.

Answers are classified by the LLM when a client is configured, with a
regex rule set as fallback. Invalid answers are cleared from the stored
questionnaire.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from domain.models import SessionLocal
from repositories import QuestionnaireRepository
from services import ai_service

logger = logging.getLogger("calo.questionnaire.validation")

FIELD_CONTEXTS = {
    "additional_personal_info": "Additional personal information relevant to nutrition planning",
    "main_goal_text": "User's main health or nutrition goal description",
    "specific_goal": "Specific, measurable health goal",
    "most_important_outcome": "What the user wants to achieve most",
    "special_personal_goal": "Personal health goal with special meaning to the user",
    "medications": "Current medications the user is taking",
    "health_goals": "Health-related goals and aspirations",
    "functional_issues": "Any functional health issues or limitations",
    "food_related_medical_issues": "Medical conditions related to food or digestion",
    "disliked_foods": "Foods the user dislikes or wants to avoid",
    "liked_foods": "Foods the user enjoys and prefers",
    "dietary_restrictions": "Dietary restrictions or requirements",
    "upcoming_events": "Upcoming events that might affect nutrition goals",
    "personalized_tips": "User's preferred type of health tips",
    "family_medical_history": "Relevant family medical history",
    "medical_conditions_text": "Description of medical conditions",
    "allergies_text": "Description of allergies",
    "additional_activity_info": "Additional physical activity information",
}

OPEN_TEXT_FIELDS = tuple(FIELD_CONTEXTS)

HARMFUL_PATTERNS = [
    re.compile(r"eat\s*(rocks|glass|metal|poison|bleach|detergent)", re.IGNORECASE),
    re.compile(r"starve\s*(myself|yourself|me)", re.IGNORECASE),
    re.compile(r"stop\s*eating\s*(completely|forever|everything)", re.IGNORECASE),
    re.compile(r"want\s*to\s*die", re.IGNORECASE),
    re.compile(r"kill\s*(myself|yourself|me)", re.IGNORECASE),
    re.compile(r"self[\s-]?harm", re.IGNORECASE),
    re.compile(r"suicide", re.IGNORECASE),
    re.compile(r"anorex", re.IGNORECASE),
    re.compile(r"bulim", re.IGNORECASE),
    re.compile(r"purge", re.IGNORECASE),
    re.compile(r"laxative\s*abuse", re.IGNORECASE),
]
LETTER_RE = re.compile(r"[a-zA-Z\u0590-\u05FF]")
REPETITION_RE = re.compile(r"(.)\1{5,}")
MIN_LENGTH = 3

MODERATION_PROMPT = """You are a content moderator for a nutrition and health tracking app called Calo.
Your job is to validate user inputs in health questionnaires.

VALIDATION RULES:
1. The input should be relevant to health, nutrition, fitness, or personal wellness goals
2. The input should NOT contain:
   - Harmful or dangerous health advice (e.g., "I want to eat rocks", "I want to starve myself")
   - Inappropriate content (profanity, hate speech, explicit content)
   - Non-sensical or gibberish text
   - Goals that promote eating disorders or self-harm
3. The input SHOULD be:
   - Genuine health or nutrition goals
   - Realistic personal information
   - Appropriate food preferences or restrictions

Respond with JSON only: {"isValid": boolean, "reason": "string if invalid", "suggestion": "alternative if invalid"}"""


@dataclass
class ValidationResult:
    field_name: str
    is_valid: bool
    original_value: str
    reason: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "field_name": self.field_name,
            "is_valid": self.is_valid,
            "original_value": self.original_value,
            "reason": self.reason,
            "suggestion": self.suggestion,
        }


def _as_text(value: Union[str, Iterable[str], None]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return ", ".join(str(v) for v in value)


def rule_based_validation(field_name: str, value: str) -> ValidationResult:
    for pattern in HARMFUL_PATTERNS:
        if pattern.search(value):
            return ValidationResult(
                field_name,
                False,
                value,
                reason="Input contains potentially harmful content related to health",
                suggestion=(
                    "Please describe healthy and realistic goals. If you're struggling, "
                    "consider reaching out to a healthcare professional."
                ),
            )

    letters = len(LETTER_RE.findall(value))
    if len(value) > 10 and letters / len(value) < 0.5:
        return ValidationResult(
            field_name,
            False,
            value,
            reason="Input appears to be gibberish or non-meaningful text",
            suggestion="Please provide meaningful text related to your health goals",
        )

    if REPETITION_RE.search(value):
        return ValidationResult(
            field_name,
            False,
            value,
            reason="Input contains excessive character repetition",
            suggestion="Please provide meaningful text",
        )

    return ValidationResult(field_name, True, value)


def ai_validation(field_name: str, value: str, context: Optional[str] = None) -> ValidationResult:
    user_prompt = (
        "Validate this questionnaire input:\n"
        f"Field: {field_name}\n"
        f"Context: {context or 'Health questionnaire open-text field'}\n"
        f'User Input: "{value}"\n\n'
        "Is this input appropriate for a health/nutrition app questionnaire?"
    )
    try:
        parsed = ai_service.chat_json(
            MODERATION_PROMPT, user_prompt, temperature=0.3, max_tokens=256
        )
    except ValueError:
        logger.warning("Unparseable moderation reply for %s; accepting input", field_name)
        return ValidationResult(field_name, True, value)

    return ValidationResult(
        field_name,
        bool(parsed.get("isValid")),
        value,
        reason=parsed.get("reason"),
        suggestion=parsed.get("suggestion"),
    )


def validate_field(
    field_name: str,
    value: Union[str, List[str], None],
    context: Optional[str] = None,
) -> ValidationResult:
    """Validate one open-text answer."""
    text = _as_text(value)
    if len(text.strip()) < MIN_LENGTH:
        return ValidationResult(field_name, True, text)

    if not ai_service.is_available():
        return rule_based_validation(field_name, text)

    try:
        return ai_validation(field_name, text, context or FIELD_CONTEXTS.get(field_name))
    except Exception as e:
        logger.error("AI validation failed for %s, using rules: %s", field_name, e)
        return rule_based_validation(field_name, text)


def validate_questionnaire(db: Session, user_id: UUID) -> List[ValidationResult]:
    """Validate every open-text field of the user's latest questionnaire.

    Invalid fields are cleared to an empty list and the change committed.
    """
    questionnaire = QuestionnaireRepository(db).get_latest(user_id)
    if questionnaire is None:
        return []

    results: List[ValidationResult] = []
    for field_name in OPEN_TEXT_FIELDS:
        value = getattr(questionnaire, field_name)
        if not value:
            continue
        result = validate_field(field_name, value, FIELD_CONTEXTS[field_name])
        results.append(result)
        if not result.is_valid:
            logger.warning(
                "Invalid questionnaire input user_id=%s field=%s reason=%s",
                user_id,
                field_name,
                result.reason,
            )
            setattr(questionnaire, field_name, [])

    db.commit()
    invalid = [r.field_name for r in results if not r.is_valid]
    logger.info(
        "Questionnaire validation complete user_id=%s checked=%d invalid=%d",
        user_id,
        len(results),
        len(invalid),
    )
    return results


def run_validation_job(user_id: UUID) -> None:
    """Background entry point; owns its session and never raises."""
    db = SessionLocal()
    try:
        validate_questionnaire(db, user_id)
    except Exception:
        db.rollback()
        logger.exception("Questionnaire validation failed for user %s", user_id)
    finally:
        db.close()
