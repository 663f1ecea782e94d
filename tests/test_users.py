"""
Tests for users, gamification state and the onboarding questionnaire.

Service calls run against the in-memory database; the questionnaire route
test checks that open-text validation is scheduled after saving.
"""

import uuid
from types import SimpleNamespace

import pytest

from test_fixtures import client, create_menu, create_user, make_user, unique_email
from app.exceptions import ConflictError, NotFoundError
from domain.models import AppUser, RecommendedMenu
from domain.schemas.user_schemas import QuestionnaireUpsert, UserCreate
from services.questionnaire_service import QuestionnaireService, meals_per_day
from services.user_service import UserService


# =============================================================================
# USERS
# =============================================================================


def test_create_user_normalizes_email(db_session):
    email = unique_email("Dana.Levi").upper()
    user = UserService.create_user(db_session, UserCreate(email=email, name="Dana Levi"))
    assert user.email == email.lower()
    assert user.level == 1
    assert user.current_xp == 0


def test_create_user_duplicate_email(db_session):
    email = unique_email()
    UserService.create_user(db_session, UserCreate(email=email))
    with pytest.raises(ConflictError):
        UserService.create_user(db_session, UserCreate(email=email))


def test_get_user_not_found(db_session):
    with pytest.raises(NotFoundError):
        UserService.get_user(db_session, uuid.uuid4())


def test_delete_user_removes_menus(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=1)

    assert UserService.delete_user(db_session, user.user_id) is True
    assert UserService.delete_user(db_session, user.user_id) is False

    db_session.expire_all()
    assert db_session.get(AppUser, user.user_id) is None
    assert db_session.get(RecommendedMenu, menu.menu_id) is None


# =============================================================================
# QUESTIONNAIRE
# =============================================================================


def test_save_questionnaire_upserts(db_session):
    user = create_user(db_session)
    first = QuestionnaireService.save_questionnaire(
        db_session,
        user.user_id,
        QuestionnaireUpsert(age=31, meal_structure="3_main", liked_foods="Shakshuka"),
    )
    assert first.liked_foods == ["Shakshuka"]

    second = QuestionnaireService.save_questionnaire(
        db_session,
        user.user_id,
        QuestionnaireUpsert(age=32, meal_structure="3_plus_2_snacks", liked_foods=["Falafel", "Sabich"]),
    )
    assert second.questionnaire_id == first.questionnaire_id
    assert second.age == 32
    assert second.liked_foods == ["Falafel", "Sabich"]
    assert QuestionnaireService.get_meals_per_day(db_session, user.user_id) == 5


def test_blank_open_text_is_stored_empty(db_session):
    user = create_user(db_session)
    questionnaire = QuestionnaireService.save_questionnaire(
        db_session, user.user_id, QuestionnaireUpsert(main_goal_text="   ")
    )
    assert questionnaire.main_goal_text == []


def test_save_questionnaire_unknown_user(db_session):
    with pytest.raises(NotFoundError):
        QuestionnaireService.save_questionnaire(db_session, uuid.uuid4(), QuestionnaireUpsert())


def test_get_questionnaire_missing(db_session):
    user = create_user(db_session)
    with pytest.raises(NotFoundError):
        QuestionnaireService.get_questionnaire(db_session, user.user_id)


def test_meals_per_day_resolution():
    assert meals_per_day(None) == 3
    assert meals_per_day(SimpleNamespace(meals_per_day=4, meal_structure="2_main")) == 4
    assert meals_per_day(SimpleNamespace(meals_per_day=None, meal_structure="2_main")) == 2
    assert meals_per_day(SimpleNamespace(meals_per_day=None, meal_structure="unknown")) == 3


def test_questionnaire_route_schedules_validation(monkeypatch):
    import api.routes.users as users_routes

    user_id = uuid.uuid4()
    saved = make_user(user_id=user_id)
    questionnaire = dict(
        questionnaire_id=uuid.uuid4(),
        user_id=user_id,
        created_at=saved.created_at,
        updated_at=saved.updated_at,
    )
    monkeypatch.setattr(
        QuestionnaireService,
        "save_questionnaire",
        staticmethod(lambda db, uid, data: SimpleNamespace(**questionnaire)),
    )
    scheduled = []
    monkeypatch.setattr(users_routes, "run_validation_job", lambda uid: scheduled.append(uid))

    r = client.put(f"/users/{user_id}/questionnaire", json={"age": 30, "liked_foods": "Hummus"})

    assert r.status_code == 200
    assert r.json()["message"] == "Questionnaire saved"
    assert scheduled == [user_id]
