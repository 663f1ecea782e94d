"""
Domain schemas package - Pydantic request/response models.
"""

from domain.schemas.user_schemas import (
    UserCreate,
    UserResponse,
    GamificationResponse,
    QuestionnaireUpsert,
    QuestionnaireResponse,
)
from domain.schemas.menu_schemas import (
    IngredientIn,
    IngredientResponse,
    MealResponse,
    MenuResponse,
    GenerateMenuRequest,
    MenuUpdate,
    MealCreate,
    MealUpdate,
    SkipMealRequest,
    IngredientCheckRequest,
    MenuReviewRequest,
    FavoriteRequest,
    FeedbackRequest,
)
from domain.schemas.completion_schemas import (
    CompleteMealRequest,
    CompletionResponse,
    MealLogCreate,
    MealLogResponse,
)
from domain.schemas.notification_schemas import (
    DeviceRegisterRequest,
    DeviceUnregisterRequest,
    DeviceResponse,
    PreferencesUpdate,
    PreferencesResponse,
    NotificationResponse,
)
from domain.schemas.recommendation_schemas import RecommendationResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "GamificationResponse",
    "QuestionnaireUpsert",
    "QuestionnaireResponse",
    "IngredientIn",
    "IngredientResponse",
    "MealResponse",
    "MenuResponse",
    "GenerateMenuRequest",
    "MenuUpdate",
    "MealCreate",
    "MealUpdate",
    "SkipMealRequest",
    "IngredientCheckRequest",
    "MenuReviewRequest",
    "FavoriteRequest",
    "FeedbackRequest",
    "CompleteMealRequest",
    "CompletionResponse",
    "MealLogCreate",
    "MealLogResponse",
    "DeviceRegisterRequest",
    "DeviceUnregisterRequest",
    "DeviceResponse",
    "PreferencesUpdate",
    "PreferencesResponse",
    "NotificationResponse",
    "RecommendationResponse",
]
