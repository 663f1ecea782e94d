"""Recommended menu routes"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID

from api.responses import success_response
from domain.models import get_db_session
from domain.schemas.completion_schemas import CompletionResponse
from domain.schemas.menu_schemas import (
    FavoriteRequest,
    FeedbackRequest,
    GenerateMenuRequest,
    IngredientCheckRequest,
    MealCreate,
    MealUpdate,
    MenuReviewRequest,
    MenuUpdate,
    SkipMealRequest,
)
from services.menu_generation_service import MenuGenerationService
from services.menu_service import MenuService, serialize_meal, serialize_menu

router = APIRouter(prefix="/users/{user_id}/menus", tags=["Menus"])
logger = logging.getLogger("calo.api.menus")


@router.get("")
def list_menus(user_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MenuService.list_menus(db, user_id))


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_menu(
    user_id: UUID,
    request: GenerateMenuRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db_session),
):
    """Create a placeholder menu now and fill it with AI recipes in the background."""
    menu, context = MenuGenerationService.create_placeholder_menu(db, user_id, request)
    background_tasks.add_task(MenuGenerationService.enhance_menu, context)
    return success_response(
        MenuGenerationService.placeholder_response(menu),
        "Menu created. Personalized recipes are being generated.",
    )


@router.get("/active")
def get_active_menu(user_id: UUID, db: Session = Depends(get_db_session)):
    menu = MenuService.get_active_menu(db, user_id)
    return success_response(serialize_menu(menu) if menu else None)


@router.get("/today-meals")
def get_today_meals(user_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MenuService.today_meals(db, user_id))


@router.get("/{menu_id}")
def get_menu(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(serialize_menu(MenuService.get_menu(db, user_id, menu_id)))


@router.put("/{menu_id}")
def update_menu(
    user_id: UUID, menu_id: UUID, data: MenuUpdate, db: Session = Depends(get_db_session)
):
    menu = MenuService.update_menu(db, user_id, menu_id, data)
    return success_response(serialize_menu(menu), "Menu updated")


@router.delete("/{menu_id}")
def delete_menu(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    MenuService.delete_menu(db, user_id, menu_id)
    return success_response({"deleted": str(menu_id)}, "Menu deleted")


@router.post("/{menu_id}/start-today")
def start_menu_today(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    menu = MenuService.start_today(db, user_id, menu_id)
    return success_response(serialize_menu(menu), "Menu started")


@router.post("/{menu_id}/stop")
def stop_menu(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    menu = MenuService.stop_menu(db, user_id, menu_id)
    return success_response(serialize_menu(menu), "Menu stopped")


@router.get("/{menu_id}/with-progress")
def get_menu_with_progress(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MenuService.with_progress(db, user_id, menu_id))


@router.post("/{menu_id}/skip")
def skip_meal(
    user_id: UUID, menu_id: UUID, data: SkipMealRequest, db: Session = Depends(get_db_session)
):
    completion = MenuService.skip_meal(
        db, user_id, menu_id, data.day_number, data.meal_type, data.reason
    )
    return success_response(CompletionResponse.model_validate(completion), "Meal skipped")


@router.post("/{menu_id}/ingredient-checks")
def toggle_ingredient_check(
    user_id: UUID,
    menu_id: UUID,
    data: IngredientCheckRequest,
    db: Session = Depends(get_db_session),
):
    check = MenuService.toggle_ingredient_check(
        db, user_id, menu_id, data.ingredient_id, data.meal_id, data.checked
    )
    return success_response(
        {
            "ingredient_id": str(check.ingredient_id),
            "meal_id": str(check.meal_id),
            "checked": check.checked,
            "checked_at": check.checked_at,
        }
    )


@router.post("/{menu_id}/review", status_code=status.HTTP_201_CREATED)
def review_menu(
    user_id: UUID, menu_id: UUID, data: MenuReviewRequest, db: Session = Depends(get_db_session)
):
    review = MenuService.review_menu(
        db, user_id, menu_id, data.review_type, data.rating, data.feedback
    )
    return success_response(
        {
            "review_id": str(review.review_id),
            "menu_id": str(review.menu_id),
            "review_type": review.review_type,
            "rating": review.rating,
            "feedback": review.feedback,
        },
        "Review saved",
    )


@router.get("/{menu_id}/shopping-list")
def get_shopping_list(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MenuService.shopping_list(db, user_id, menu_id))


@router.get("/{menu_id}/completion")
def get_completion_summary(user_id: UUID, menu_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MenuService.completion_summary(db, user_id, menu_id))


@router.post("/{menu_id}/meals", status_code=status.HTTP_201_CREATED)
def add_meal(
    user_id: UUID, menu_id: UUID, data: MealCreate, db: Session = Depends(get_db_session)
):
    meal = MenuService.add_meal(db, user_id, menu_id, data)
    return success_response(serialize_meal(meal), "Meal added")


@router.put("/{menu_id}/meals/{meal_id}")
def update_meal(
    user_id: UUID,
    menu_id: UUID,
    meal_id: UUID,
    data: MealUpdate,
    db: Session = Depends(get_db_session),
):
    meal = MenuService.update_meal(db, user_id, menu_id, meal_id, data)
    return success_response(serialize_meal(meal), "Meal updated")


@router.delete("/{menu_id}/meals/{meal_id}")
def delete_meal(
    user_id: UUID, menu_id: UUID, meal_id: UUID, db: Session = Depends(get_db_session)
):
    MenuService.delete_meal(db, user_id, menu_id, meal_id)
    return success_response({"deleted": str(meal_id)}, "Meal deleted")


@router.post("/{menu_id}/meals/{meal_id}/favorite")
def favorite_meal(
    user_id: UUID,
    menu_id: UUID,
    meal_id: UUID,
    data: FavoriteRequest,
    db: Session = Depends(get_db_session),
):
    pref = MenuService.set_favorite(db, user_id, menu_id, meal_id, data.is_favorite)
    return success_response({"meal_id": str(meal_id), "is_favorite": pref.rating == 5})


@router.post("/{menu_id}/meals/{meal_id}/feedback")
def meal_feedback(
    user_id: UUID,
    menu_id: UUID,
    meal_id: UUID,
    data: FeedbackRequest,
    db: Session = Depends(get_db_session),
):
    MenuService.meal_feedback(db, user_id, menu_id, meal_id, data.liked)
    return success_response({"meal_id": str(meal_id), "liked": data.liked}, "Feedback saved")
