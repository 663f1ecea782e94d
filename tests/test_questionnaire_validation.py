"""
Open-text questionnaire moderation tests, rule based and with a stubbed model.
"""

import pytest

from test_fixtures import create_questionnaire, create_user
from domain.models import UserQuestionnaire
from services import ai_service
from services.ai_service import parse_json_response
from services.questionnaire_validation import (
    rule_based_validation,
    validate_field,
    validate_questionnaire,
)


@pytest.mark.parametrize(
    "text",
    [
        "I want to eat rocks every morning",
        "starve myself until summer",
        "Tips about purge methods",
    ],
)
def test_harmful_text_is_rejected(text):
    result = rule_based_validation("main_goal_text", text)
    assert result.is_valid is False
    assert "harmful" in result.reason


def test_gibberish_and_repetition_are_rejected():
    assert rule_based_validation("liked_foods", "1234 5678 !!!! ####").is_valid is False
    assert rule_based_validation("liked_foods", "soooooooo tasty").is_valid is False


def test_reasonable_text_is_accepted():
    assert rule_based_validation("liked_foods", "Hummus, lentils and grilled fish").is_valid is True
    assert rule_based_validation("liked_foods", "חומוס ופלאפל").is_valid is True


def test_short_values_skip_validation():
    assert validate_field("medications", "no").is_valid is True
    assert validate_field("medications", None).is_valid is True


def test_list_values_are_joined():
    result = validate_field("disliked_foods", ["olives", "anchovies"])
    assert result.is_valid is True
    assert result.original_value == "olives, anchovies"


def test_model_verdict_is_used_when_available(monkeypatch):
    monkeypatch.setattr(ai_service, "get_openai_client", lambda: object())
    monkeypatch.setattr(
        ai_service,
        "chat_json",
        lambda system, user, temperature, max_tokens: {
            "isValid": False,
            "reason": "Not related to nutrition",
            "suggestion": "Describe a food goal",
        },
    )

    result = validate_field("main_goal_text", "Buy a new car this year")

    assert result.is_valid is False
    assert result.reason == "Not related to nutrition"


def test_model_failure_falls_back_to_rules(monkeypatch):
    def broken(system, user, temperature, max_tokens):
        raise RuntimeError("timeout")

    monkeypatch.setattr(ai_service, "get_openai_client", lambda: object())
    monkeypatch.setattr(ai_service, "chat_json", broken)

    assert validate_field("main_goal_text", "I want to starve myself").is_valid is False
    assert validate_field("main_goal_text", "Lose 5 kg by eating more vegetables").is_valid is True


def test_invalid_fields_are_cleared(db_session):
    user = create_user(db_session)
    questionnaire = create_questionnaire(
        db_session,
        user,
        liked_foods=["Shakshuka", "Grilled fish"],
        main_goal_text=["I want to eat glass"],
    )

    results = validate_questionnaire(db_session, user.user_id)

    by_field = {r.field_name: r for r in results}
    assert by_field["liked_foods"].is_valid is True
    assert by_field["main_goal_text"].is_valid is False

    db_session.expire_all()
    stored = db_session.get(UserQuestionnaire, questionnaire.questionnaire_id)
    assert stored.liked_foods == ["Shakshuka", "Grilled fish"]
    assert stored.main_goal_text == []


def test_no_questionnaire(db_session):
    user = create_user(db_session)
    assert validate_questionnaire(db_session, user.user_id) == []


def test_parse_json_response_handles_fences_and_prose():
    assert parse_json_response('```json\n{"meals": []}\n```') == {"meals": []}
    assert parse_json_response('Here you go: {"menu_name": "Green Week"} enjoy') == {"menu_name": "Green Week"}
    with pytest.raises(ValueError):
        parse_json_response("no json here")
    with pytest.raises(ValueError):
        parse_json_response("[1, 2]")
