"""ASGI application for Larder."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from datetime import date
from time import perf_counter
from typing import Any, Literal, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from larder import __version__, metrics
from larder.config import Settings, get_settings
from larder.logging_utils import configure_logging as configure_app_logging
from larder.models.catalog import (
    Ingredient,
    IngredientCategory,
    MeasurementUnit,
    Recipe,
)
from larder.models.grocery import (
    GroupedListView,
    GroupedRow,
    ListEntry,
    ListGenerationResult,
    ListProgress,
    ListView,
)
from larder.models.planning import DayOfWeek, MealType, Period, PeriodStatus, ScheduledMeal
from larder.server import deps

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Ensure validation error payloads can be serialized to JSON."""

    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _http_error(exc: ValueError) -> HTTPException:
    """Map repository ``ValueError``s: unknown ids are 404, anything else is bad input."""

    message = str(exc)
    if "not found" in message:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _view_response(view: GroupedListView) -> GroupedViewResponse:
    return GroupedViewResponse(
        kind=view.kind,
        period_ids=view.period_ids,
        rows=view.rows,
        total=view.total,
        completed=view.completed,
    )


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Larder Grocery Planner", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("larder.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body_preview: str | None = None
        raw_body = await request.body()
        if raw_body:
            decoded = raw_body.decode("utf-8", errors="replace")
            if len(decoded) > 2048:
                decoded = decoded[:2048] + "...(truncated)"
            body_preview = decoded

        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s | body=%s",
            request.method,
            request.url.path,
            exc.errors(),
            body_preview,
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.get("/health", summary="Liveness probe")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    # Catalog

    @application.get("/ingredients", response_model=list[Ingredient], summary="List ingredients")
    def ingredients_list(
        provider: deps.IngredientProvider = Depends(deps.get_ingredient_provider),
    ) -> list[Ingredient]:
        return provider()

    @application.post(
        "/ingredients",
        response_model=Ingredient,
        status_code=status.HTTP_201_CREATED,
        summary="Create ingredient",
    )
    def ingredients_create(
        payload: IngredientCreateRequest,
        auth: None = Depends(deps.require_api_token),
        creator: deps.IngredientCreator = Depends(deps.get_ingredient_creator),
    ) -> Ingredient:
        try:
            return creator(payload.model_dump())
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.get("/recipes", response_model=list[Recipe], summary="List recipes")
    def recipes_list(
        provider: deps.RecipeProvider = Depends(deps.get_recipe_provider),
    ) -> list[Recipe]:
        return provider()

    @application.post(
        "/recipes",
        response_model=Recipe,
        status_code=status.HTTP_201_CREATED,
        summary="Create recipe",
    )
    def recipes_create(
        payload: RecipeCreateRequest,
        auth: None = Depends(deps.require_api_token),
        creator: deps.RecipeCreator = Depends(deps.get_recipe_creator),
    ) -> Recipe:
        try:
            return creator(payload.model_dump())
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.get("/recipes/{recipe_id}", response_model=Recipe, summary="Fetch recipe")
    def recipes_get(
        recipe_id: int,
        fetcher: deps.RecipeFetcher = Depends(deps.get_recipe_fetcher),
    ) -> Recipe:
        recipe = fetcher(recipe_id)
        if recipe is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
        return recipe

    @application.delete(
        "/recipes/{recipe_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete recipe",
    )
    def recipes_delete(
        recipe_id: int,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.RecipeDeleter = Depends(deps.get_recipe_deleter),
    ) -> None:
        try:
            deleter(recipe_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    # Periods and meals

    @application.get("/periods", response_model=list[Period], summary="List week plans")
    def periods_list(
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        provider: deps.PeriodProvider = Depends(deps.get_period_provider),
    ) -> list[Period]:
        return provider(start, end)

    @application.post(
        "/periods",
        response_model=Period,
        status_code=status.HTTP_201_CREATED,
        summary="Create week plan",
    )
    def periods_create(
        payload: PeriodCreateRequest,
        auth: None = Depends(deps.require_api_token),
        creator: deps.PeriodCreator = Depends(deps.get_period_creator),
    ) -> Period:
        try:
            return creator(payload.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    @application.get("/periods/{period_id}", response_model=Period, summary="Fetch week plan")
    def periods_get(
        period_id: int,
        fetcher: deps.PeriodFetcher = Depends(deps.get_period_fetcher),
    ) -> Period:
        period = fetcher(period_id)
        if period is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Period not found")
        return period

    @application.delete(
        "/periods/{period_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete week plan with its meals and list",
    )
    def periods_delete(
        period_id: int,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.PeriodDeleter = Depends(deps.get_period_deleter),
    ) -> None:
        try:
            deleter(period_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/periods/{period_id}/copy-from/{source_id}",
        response_model=Period,
        summary="Copy another week plan onto matching slots",
    )
    def periods_copy(
        period_id: int,
        source_id: int,
        auth: None = Depends(deps.require_api_token),
        copier: deps.PeriodCopier = Depends(deps.get_period_copier),
    ) -> Period:
        try:
            return copier(period_id, source_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/periods/{period_id}/clear",
        response_model=Period,
        summary="Empty every meal slot of a week plan",
    )
    def periods_clear(
        period_id: int,
        auth: None = Depends(deps.require_api_token),
        clearer: deps.PeriodClearer = Depends(deps.get_period_clearer),
    ) -> Period:
        try:
            return clearer(period_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/periods/{period_id}/meals",
        response_model=ScheduledMeal,
        status_code=status.HTTP_201_CREATED,
        summary="Add meal slot",
    )
    def meals_create(
        period_id: int,
        payload: MealCreateRequest,
        auth: None = Depends(deps.require_api_token),
        creator: deps.MealCreator = Depends(deps.get_meal_creator),
    ) -> ScheduledMeal:
        try:
            return creator(period_id, payload.model_dump(exclude_none=True))
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.patch("/meals/{meal_id}", response_model=ScheduledMeal, summary="Change meal")
    def meals_update(
        meal_id: int,
        payload: MealUpdateRequest,
        auth: None = Depends(deps.require_api_token),
        updater: deps.MealUpdater = Depends(deps.get_meal_updater),
    ) -> ScheduledMeal:
        update_payload = payload.model_dump(exclude_none=True)
        try:
            return updater(meal_id, update_payload)
        except KeyError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing field {exc} for action '{payload.action}'",
            ) from exc
        except ValueError as exc:
            raise _http_error(exc) from exc

    # Grocery list of one period

    @application.post(
        "/periods/{period_id}/grocery-list/generate",
        response_model=ListGenerationResult,
        summary="Regenerate the grocery list from the meal plan",
    )
    def grocery_list_generate(
        period_id: int,
        auth: None = Depends(deps.require_api_token),
        generator: deps.ListGenerator = Depends(deps.get_list_generator),
    ) -> ListGenerationResult:
        try:
            return generator(period_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.get(
        "/periods/{period_id}/grocery-list",
        response_model=list[ListEntry],
        summary="List grocery entries of a week plan",
    )
    def grocery_list_entries(
        period_id: int,
        view: ListView = Query(default=ListView.ALL),
        provider: deps.EntryProvider = Depends(deps.get_entry_provider),
    ) -> list[ListEntry]:
        try:
            return provider(period_id, view)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.get(
        "/periods/{period_id}/grocery-list/progress",
        response_model=ProgressResponse,
        summary="Pantry check and shopping progress",
    )
    def grocery_list_progress(
        period_id: int,
        provider: deps.ProgressProvider = Depends(deps.get_progress_provider),
    ) -> ProgressResponse:
        try:
            progress: ListProgress = provider(period_id)
        except ValueError as exc:
            raise _http_error(exc) from exc
        return ProgressResponse(
            **progress.model_dump(),
            pantry_check_ratio=progress.pantry_check_ratio,
            shopping_ratio=progress.shopping_ratio,
        )

    @application.post(
        "/periods/{period_id}/grocery-list/items",
        response_model=ListEntry,
        status_code=status.HTTP_201_CREATED,
        summary="Add a manual grocery item",
    )
    def grocery_list_add_item(
        period_id: int,
        payload: ManualEntryRequest,
        auth: None = Depends(deps.require_api_token),
        creator: deps.EntryCreator = Depends(deps.get_entry_creator),
    ) -> ListEntry:
        try:
            return creator({"period_id": period_id, **payload.model_dump(exclude_none=True)})
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/periods/{period_id}/grocery-list/mark-remaining-needed",
        summary="Finish the pantry check of a week plan",
    )
    def grocery_list_mark_remaining(
        period_id: int,
        auth: None = Depends(deps.require_api_token),
        marker: deps.RemainingNeededMarker = Depends(deps.get_remaining_needed_marker),
    ) -> dict[str, int]:
        try:
            return {"updated": marker(period_id)}
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post("/grocery-list/cleanup", summary="Remove orphaned derived entries")
    def grocery_list_cleanup(
        auth: None = Depends(deps.require_api_token),
        cleaner: deps.OrphanCleaner = Depends(deps.get_orphan_cleaner),
    ) -> dict[str, int]:
        return {"removed": cleaner()}

    @application.post(
        "/grocery-list/items/{entry_id}/pantry",
        response_model=ListEntry,
        summary="Change the pantry state of an entry",
    )
    def grocery_item_pantry(
        entry_id: int,
        payload: Optional[PantryActionRequest] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        action: deps.EntryAction = Depends(deps.get_entry_action),
    ) -> ListEntry:
        try:
            selected = payload or PantryActionRequest()
            return action(entry_id, selected.action, None)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/grocery-list/items/{entry_id}/check",
        response_model=ListEntry,
        summary="Change the purchase state of an entry",
    )
    def grocery_item_check(
        entry_id: int,
        payload: Optional[CheckActionRequest] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        action: deps.EntryAction = Depends(deps.get_entry_action),
    ) -> ListEntry:
        try:
            selected = payload or CheckActionRequest()
            return action(entry_id, selected.action, selected.by)
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.put(
        "/grocery-list/items/{entry_id}",
        response_model=ListEntry,
        summary="Change the quantity of an entry",
    )
    def grocery_item_update(
        entry_id: int,
        payload: EntryQuantityRequest,
        auth: None = Depends(deps.require_api_token),
        updater: deps.EntryQuantityUpdater = Depends(deps.get_entry_quantity_updater),
    ) -> ListEntry:
        try:
            return updater(entry_id, payload.model_dump(exclude_none=True))
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.delete(
        "/grocery-list/items/{entry_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete a grocery entry",
    )
    def grocery_item_delete(
        entry_id: int,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.EntryDeleter = Depends(deps.get_entry_deleter),
    ) -> None:
        try:
            deleter(entry_id)
        except ValueError as exc:
            raise _http_error(exc) from exc

    # Combined views across week plans

    @application.get(
        "/views/pantry-check",
        response_model=GroupedViewResponse,
        summary="Combined pantry check across week plans",
    )
    def views_pantry_check(
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        refresh: bool = Query(default=True),
        provider: deps.GroupedViewProvider = Depends(deps.get_grouped_view_provider),
    ) -> GroupedViewResponse:
        return _view_response(provider(ListView.PANTRY_CHECK.value, start, end, refresh))

    @application.get(
        "/views/shopping",
        response_model=GroupedViewResponse,
        summary="Combined shopping list across week plans",
    )
    def views_shopping(
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        refresh: bool = Query(default=True),
        provider: deps.GroupedViewProvider = Depends(deps.get_grouped_view_provider),
    ) -> GroupedViewResponse:
        return _view_response(provider(ListView.SHOPPING.value, start, end, refresh))

    @application.get(
        "/views/shopping/share",
        response_class=PlainTextResponse,
        summary="Shopping list as plain text",
    )
    def views_shopping_share(
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        provider: deps.GroupedViewProvider = Depends(deps.get_grouped_view_provider),
    ) -> str:
        return provider(ListView.SHOPPING.value, start, end, False).share_text()

    @application.post(
        "/views/groups/{entry_id}/toggle-pantry",
        summary="Toggle the pantry state of a combined row",
    )
    def views_group_toggle_pantry(
        entry_id: int,
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        auth: None = Depends(deps.require_api_token),
        action: deps.GroupAction = Depends(deps.get_group_action),
    ) -> dict[str, int]:
        try:
            return {"changed": action(entry_id, "toggle_pantry", start, end, None)}
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/views/groups/{entry_id}/toggle-checked",
        summary="Toggle the purchase state of a combined row",
    )
    def views_group_toggle_checked(
        entry_id: int,
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        by: Optional[str] = Query(default=None, max_length=255),
        auth: None = Depends(deps.require_api_token),
        action: deps.GroupAction = Depends(deps.get_group_action),
    ) -> dict[str, int]:
        try:
            return {"changed": action(entry_id, "toggle_checked", start, end, by)}
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.delete(
        "/views/groups/{entry_id}",
        summary="Delete every entry of a combined row",
    )
    def views_group_delete(
        entry_id: int,
        view: Literal["shopping", "pantry_check"] = Query(default="shopping"),
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        auth: None = Depends(deps.require_api_token),
        action: deps.GroupAction = Depends(deps.get_group_action),
    ) -> dict[str, int]:
        try:
            return {"deleted": action(entry_id, f"delete_{view}", start, end, None)}
        except ValueError as exc:
            raise _http_error(exc) from exc

    @application.post(
        "/views/{operation}",
        summary="Range-wide pantry and regeneration operations",
    )
    def views_range_operation(
        operation: Literal["mark-remaining-needed", "sync-pantry", "regenerate"],
        start: Optional[date] = Query(default=None),
        end: Optional[date] = Query(default=None),
        auth: None = Depends(deps.require_api_token),
        action: deps.RangeAction = Depends(deps.get_range_action),
    ) -> dict[str, int]:
        return {"changed": action(operation.replace("-", "_"), start, end)}

    return application


class IngredientCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: IngredientCategory = Field(default=IngredientCategory.OTHER)
    default_unit: MeasurementUnit = Field(default=MeasurementUnit.GRAM)


class RecipeIngredientRequest(BaseModel):
    ingredient_id: Optional[int] = Field(default=None)
    custom_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: float = Field(ge=0)
    unit: MeasurementUnit
    preparation_note: Optional[str] = Field(default=None, max_length=255)
    is_optional: bool = Field(default=False)


class RecipeCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    servings: int = Field(default=2, ge=0)
    ingredients: list[RecipeIngredientRequest] = Field(default_factory=list)


class PeriodCreateRequest(BaseModel):
    start_date: date
    status: PeriodStatus = Field(default=PeriodStatus.DRAFT)
    household_note: Optional[str] = Field(default=None, max_length=1000)
    with_default_slots: bool = Field(default=False)


class MealCreateRequest(BaseModel):
    day: DayOfWeek
    meal_type: MealType
    servings_planned: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)


class MealUpdateRequest(BaseModel):
    action: Literal["assign_recipe", "remove_recipe", "custom", "skip", "clear", "servings"]
    recipe_id: Optional[int] = Field(default=None)
    name: Optional[str] = Field(default=None, max_length=255)
    servings: Optional[int] = Field(default=None, ge=0)


class ManualEntryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    quantity: float = Field(default=1.0, ge=0)
    unit: MeasurementUnit = Field(default=MeasurementUnit.PIECE)
    category: Optional[IngredientCategory] = Field(default=None)


class EntryQuantityRequest(BaseModel):
    quantity: float = Field(ge=0)
    unit: Optional[MeasurementUnit] = Field(default=None)


class PantryActionRequest(BaseModel):
    action: Literal["mark_in_pantry", "unmark_from_pantry", "toggle_pantry", "mark_needed"] = (
        "toggle_pantry"
    )


class CheckActionRequest(BaseModel):
    action: Literal["check", "uncheck", "toggle_checked"] = "toggle_checked"
    by: Optional[str] = Field(default=None, max_length=255)


class ProgressResponse(BaseModel):
    pantry_check_total: int
    in_pantry: int
    shopping_total: int
    purchased: int
    pantry_check_ratio: float
    shopping_ratio: float


class GroupedViewResponse(BaseModel):
    kind: ListView
    period_ids: list[int]
    rows: list[GroupedRow]
    total: int
    completed: int


app = create_app()

__all__ = ["app", "create_app"]
