from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from services.reservations.app import observability
from services.reservations.app.errors import UpstreamError, describe_validation_errors
from services.reservations.app.formatting import (
    format_availability,
    format_cuisines,
    format_reservation_link,
    format_search_results,
)
from services.reservations.app.logging import configure_logging, logger
from services.reservations.app.orchestrator import SearchOrchestrator
from services.reservations.app.schemas import (
    GenerateReservationLinkInput,
    GenerateReservationLinkResponse,
    GetAvailabilityInput,
    GetAvailabilityResponse,
    ListCuisinesInput,
    ListCuisinesResponse,
    SearchRestaurantsInput,
    SearchRestaurantsResponse,
    ToolDefinition,
    ToolError,
    ToolListResponse,
    ToolResult,
)
from services.reservations.app.settings import SETTINGS


TOOL_DEFINITIONS: list[tuple[str, str, type]] = [
    (
        "search_restaurants",
        "Search for restaurants with optional filters. Can search by text query, location, cuisine type, "
        "date range, party size, budget, and more.",
        SearchRestaurantsInput,
    ),
    (
        "get_restaurant_availability",
        "Get detailed availability calendar for a specific restaurant",
        GetAvailabilityInput,
    ),
    (
        "list_cuisines",
        "Get a list of all available cuisine types for filtering restaurant searches",
        ListCuisinesInput,
    ),
    (
        "generate_reservation_link",
        "Generate a direct reservation link for a specific restaurant with pre-filled parameters",
        GenerateReservationLinkInput,
    ),
]


app = FastAPI(title="Restaurant Reservation Tools API", version="0.1.0")
configure_logging(SETTINGS.log_level)
if SETTINGS.tracing_enabled:
    observability.setup_tracing(app, service_name="reservations", endpoint=SETTINGS.otlp_endpoint)
observability.add_metrics_middleware(app)


def get_orchestrator() -> SearchOrchestrator:
    # Built per call: no state is shared between tool calls.
    return SearchOrchestrator()


def _error_result(response_cls: type[ToolResult], tool_name: str, action: str, e: Exception) -> ToolResult:
    """
    Convert any failure into a non-throwing tool result so one failed call never takes the service down.
    """
    if isinstance(e, UpstreamError):
        err = ToolError(kind=e.kind.value, message=e.message, status_code=e.status_code)
        logger.info("tool_call_failed", tool_name=tool_name, kind=err.kind, status_code=e.status_code)
    elif isinstance(e, (ValidationError, ValueError)):
        message = describe_validation_errors(e.errors()) if isinstance(e, ValidationError) else str(e)
        err = ToolError(kind="validation", message=message)
        logger.info("tool_call_failed", tool_name=tool_name, kind=err.kind, message=message)
    else:
        err = ToolError(kind="internal", message="Unknown error")
        logger.exception("tool_call_failed", tool_name=tool_name, kind=err.kind)

    observability.record_tool_error(tool_name, err.kind)
    return response_cls(is_error=True, error=err, text=f"Error {action}: {err.message}")


@app.exception_handler(RequestValidationError)
async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    tool_name = request.url.path.rsplit("/", 1)[-1]
    message = describe_validation_errors(exc.errors())
    observability.record_tool_error(tool_name, "validation")
    logger.info("tool_call_failed", tool_name=tool_name, kind="validation", message=message)
    body = ToolResult(is_error=True, error=ToolError(kind="validation", message=message, status_code=422), text=f"Error: {message}")
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


@app.get("/healthz")
async def healthz() -> dict:
    return {"ok": True}


@app.get("/tools", response_model=ToolListResponse)
async def list_tools() -> ToolListResponse:
    return ToolListResponse(
        tools=[
            ToolDefinition(name=name, description=description, input_schema=model.model_json_schema())
            for name, description, model in TOOL_DEFINITIONS
        ]
    )


@app.post("/tools/search_restaurants", response_model=SearchRestaurantsResponse)
async def search_restaurants(
    inp: SearchRestaurantsInput, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> SearchRestaurantsResponse:
    try:
        req = orchestrator.prepare(inp)
        outcome = await orchestrator.search(req)
    except Exception as e:  # noqa: BLE001
        return _error_result(SearchRestaurantsResponse, "search_restaurants", "searching restaurants", e)

    # Render with the cuisine filter that was actually applied.
    shown = req.model_copy(update={"cuisines": outcome.cuisines})
    logger.info("tool_call_finished", tool_name="search_restaurants", **outcome.counts)
    return SearchRestaurantsResponse(
        text=format_search_results(outcome.restaurants, shown),
        restaurants=outcome.restaurants,
        counts=outcome.counts,
    )


@app.post("/tools/get_restaurant_availability", response_model=GetAvailabilityResponse)
async def get_restaurant_availability(
    inp: GetAvailabilityInput, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> GetAvailabilityResponse:
    try:
        slots = await orchestrator.availability(inp)
    except Exception as e:  # noqa: BLE001
        return _error_result(GetAvailabilityResponse, "get_restaurant_availability", "getting availability", e)

    logger.info("tool_call_finished", tool_name="get_restaurant_availability", slots=len(slots))
    return GetAvailabilityResponse(
        text=format_availability(slots, inp.shop_id, inp.num_people, inp.start_at),
        slots=slots,
    )


@app.post("/tools/list_cuisines", response_model=ListCuisinesResponse)
async def list_cuisines(
    inp: ListCuisinesInput, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> ListCuisinesResponse:
    try:
        cuisines = await orchestrator.cuisines(inp.locale)
    except Exception as e:  # noqa: BLE001
        return _error_result(ListCuisinesResponse, "list_cuisines", "getting cuisines", e)

    logger.info("tool_call_finished", tool_name="list_cuisines", cuisines=len(cuisines))
    return ListCuisinesResponse(text=format_cuisines(cuisines, inp.locale), cuisines=cuisines)


@app.post("/tools/generate_reservation_link", response_model=GenerateReservationLinkResponse)
async def generate_reservation_link(
    inp: GenerateReservationLinkInput, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> GenerateReservationLinkResponse:
    try:
        params = orchestrator.link_params(inp)
        url = orchestrator.reservation_link(inp)
    except Exception as e:  # noqa: BLE001
        return _error_result(GenerateReservationLinkResponse, "generate_reservation_link", "generating reservation link", e)

    logger.info("tool_call_finished", tool_name="generate_reservation_link", shop_id=inp.shop_id)
    return GenerateReservationLinkResponse(
        text=format_reservation_link(url, inp.shop_id, params),
        reservation_url=url,
    )
