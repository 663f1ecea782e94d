"""
Menu service tests against an in-memory database.
"""

from datetime import timedelta

import pytest

from test_fixtures import create_menu, create_user
from app.clock import noon, utcnow
from app.exceptions import NotFoundError, ServiceValidationError
from domain.models import AppUser, RecommendedMenu
from domain.schemas.menu_schemas import MealCreate, MealUpdate
from services.menu_service import MenuService, sort_meals


def _reload(db, model, pk):
    db.expire_all()
    return db.get(model, pk)


def test_list_menus_reports_capacity(db_session):
    user = create_user(db_session)
    create_menu(db_session, user, days=1)
    result = MenuService.list_menus(db_session, user.user_id)
    assert result["menu_count"] == 1
    assert result["can_create_more"] is True
    assert len(result["menus"][0]["meals"]) == 3


def test_get_menu_of_other_user_is_not_found(db_session):
    owner = create_user(db_session)
    other = create_user(db_session)
    menu = create_menu(db_session, owner)
    with pytest.raises(NotFoundError):
        MenuService.get_menu(db_session, other.user_id, menu.menu_id)


def test_shopping_list_aggregates_by_name(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=2, meal_types=("BREAKFAST", "DINNER"))

    result = MenuService.shopping_list(db_session, user.user_id, menu.menu_id)

    assert result["total_items"] == 2
    categories = {c["category"]: c for c in result["categories"]}
    eggs = categories["Protein"]["items"][0]
    assert eggs["name"] == "Eggs"
    assert eggs["quantity"] == 8
    assert eggs["meal_count"] == 4
    assert eggs["estimated_cost"] == 12.0
    assert categories["Vegetables"]["category_cost"] == 6.0
    assert result["total_estimated_cost"] == 18.0


def test_with_progress_groups_days(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=2)
    MenuService.skip_meal(db_session, user.user_id, menu.menu_id, 1, "lunch", reason="Eating out")

    result = MenuService.with_progress(db_session, user.user_id, menu.menu_id)

    assert [d["day_number"] for d in result["days"]] == [1, 2]
    day_one = {m["meal_type"]: m for m in result["days"][0]["meals"]}
    assert day_one["LUNCH"]["skipped"] is True
    assert day_one["LUNCH"]["completed"] is False
    assert result["total_meals"] == 6
    assert result["completed_meals"] == 0
    assert result["daily_calorie_target"] == 1500
    assert result["current_day"] == 1
    assert result["is_generating"] is False


def test_with_progress_fixes_missing_start_date(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=3)
    menu.start_date = None
    menu.end_date = None
    db_session.commit()

    MenuService.with_progress(db_session, user.user_id, menu.menu_id)

    menu = _reload(db_session, RecommendedMenu, menu.menu_id)
    assert menu.start_date is not None
    assert menu.end_date.date() == (menu.start_date + timedelta(days=2)).date()


def test_skip_outside_menu_is_rejected(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=2)
    with pytest.raises(ServiceValidationError):
        MenuService.skip_meal(db_session, user.user_id, menu.menu_id, 5, "LUNCH")


def test_start_today_moves_window_and_activates(db_session):
    user = create_user(db_session)
    first = create_menu(db_session, user, days=3)
    second = create_menu(
        db_session, user, days=4, start=noon((utcnow() - timedelta(days=10)).date()), active=False
    )

    started = MenuService.start_today(db_session, user.user_id, second.menu_id)

    assert started.is_active is True
    assert started.start_date.date() == utcnow().date()
    assert (started.end_date.date() - started.start_date.date()).days == 3
    assert _reload(db_session, RecommendedMenu, first.menu_id).is_active is False
    assert _reload(db_session, AppUser, user.user_id).active_menu_id == second.menu_id


def test_stop_and_delete_clear_active_pointer(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user)

    MenuService.stop_menu(db_session, user.user_id, menu.menu_id)
    assert _reload(db_session, AppUser, user.user_id).active_menu_id is None

    other = create_menu(db_session, user)
    MenuService.delete_menu(db_session, user.user_id, other.menu_id)
    assert _reload(db_session, AppUser, user.user_id).active_menu_id is None
    assert _reload(db_session, RecommendedMenu, other.menu_id) is None


def test_meal_edits_recalculate_totals(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=1, meal_types=("LUNCH",))

    meal = MenuService.add_meal(
        db_session,
        user.user_id,
        menu.menu_id,
        MealCreate(
            name="Sabich Bowl",
            meal_type="dinner",
            day_number=1,
            calories=650,
            protein=30,
            carbs=60,
            fat=25,
            ingredients=[{"name": "Eggplant", "estimated_cost": 2.0}],
        ),
    )
    assert meal.meal_type == "DINNER"
    menu = _reload(db_session, RecommendedMenu, menu.menu_id)
    assert menu.total_calories == 1150
    assert menu.estimated_cost == 6.5

    MenuService.update_meal(db_session, user.user_id, menu.menu_id, meal.meal_id, MealUpdate(calories=450))
    assert _reload(db_session, RecommendedMenu, menu.menu_id).total_calories == 950

    MenuService.delete_meal(db_session, user.user_id, menu.menu_id, meal.meal_id)
    menu = _reload(db_session, RecommendedMenu, menu.menu_id)
    assert menu.total_calories == 500
    assert len(menu.meals) == 1


def test_ingredient_check_toggle(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=1, meal_types=("BREAKFAST",))
    meal = menu.meals[0]
    ingredient = meal.ingredients[0]

    check = MenuService.toggle_ingredient_check(
        db_session, user.user_id, menu.menu_id, ingredient.ingredient_id, meal.meal_id, True
    )
    assert check.checked is True
    assert check.checked_at is not None

    check = MenuService.toggle_ingredient_check(
        db_session, user.user_id, menu.menu_id, ingredient.ingredient_id, meal.meal_id, False
    )
    assert check.checked is False
    assert check.checked_at is None

    progress = MenuService.with_progress(db_session, user.user_id, menu.menu_id)
    assert progress["ingredient_checks"] == {f"{meal.meal_id}:{ingredient.ingredient_id}": False}


def test_review_deactivates_menu(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user)

    review = MenuService.review_menu(db_session, user.user_id, menu.menu_id, "completed", 5, "Loved it")
    assert review.rating == 5
    assert _reload(db_session, RecommendedMenu, menu.menu_id).is_active is False
    assert _reload(db_session, AppUser, user.user_id).active_menu_id is None

    with pytest.raises(ServiceValidationError):
        MenuService.review_menu(db_session, user.user_id, menu.menu_id, "completed", 9)


def test_today_meals_uses_current_day(db_session):
    user = create_user(db_session)
    create_menu(db_session, user, days=3, start=noon((utcnow() - timedelta(days=1)).date()))

    today = MenuService.today_meals(db_session, user.user_id)

    assert today["day_number"] == 2
    assert [m["meal_type"] for m in today["meals"]] == ["BREAKFAST", "LUNCH", "DINNER"]
    assert all(m["day_number"] == 2 for m in today["meals"])


def test_today_meals_without_active_menu(db_session):
    user = create_user(db_session)
    with pytest.raises(NotFoundError):
        MenuService.today_meals(db_session, user.user_id)


def test_favorite_and_feedback_are_upserted(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=1, meal_types=("LUNCH",))
    meal_id = menu.meals[0].meal_id

    first = MenuService.set_favorite(db_session, user.user_id, menu.menu_id, meal_id, True)
    second = MenuService.set_favorite(db_session, user.user_id, menu.menu_id, meal_id, False)
    assert first.preference_id == second.preference_id
    assert second.rating == 1

    feedback = MenuService.meal_feedback(db_session, user.user_id, menu.menu_id, meal_id, True)
    assert feedback.rating == 4
    assert feedback.preference_id != first.preference_id


def test_sort_meals_orders_slots_within_day(db_session):
    user = create_user(db_session)
    menu = create_menu(db_session, user, days=2, meal_types=("DINNER", "SNACK", "BREAKFAST"))
    ordered = [(m.day_number, m.meal_type) for m in sort_meals(menu.meals)]
    assert ordered[:3] == [(1, "BREAKFAST"), (1, "SNACK"), (1, "DINNER")]
