"""
FastAPI Application Entry Point

Hotel Kitchen Order Service - Hybrid Architecture
Runs on in-memory collaborators (development) or PostgreSQL + Redis
(staging / production).

Endpoints:
    - GET  /kitchen/orders: Kitchen queue
    - POST /kitchen/orders: Order intake from the placement service
    - GET  /kitchen/orders/{id}: Single order with priority and ETA
    - GET  /kitchen/orders/{id}/timeline: Status history
    - PUT  /kitchen/orders/{id}/status: Status transition
    - PUT  /kitchen/orders/{id}/assign: Staff assignment
    - POST /kitchen/orders/{id}/modified: Customer modification signal
    - POST /kitchen/orders/{id}/cancel: Customer cancellation signal
    - GET  /kitchen/stats: Today's counters
    - GET  /kitchen/staff/{staffId}/orders: Orders assigned to one staff member
    - GET  /kitchen/meal-plans/upcoming: Meal-plan orders for the coming days
    - GET  /kitchen/time-slots: One day's orders by meal slot
    - GET  /kitchen/staff/{staffId}/workload: Open orders of one staff member
    - WS   /kitchen/ws: Real-time kitchen events
    - GET  /health: System health check
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotel_kitchen.core.config import get_kitchen_config, get_settings, setup_logging
from hotel_kitchen.core.errors import AuthorizationError, KitchenError, ValidationError
from hotel_kitchen.core.security import Actor, Permission, Role, require_permission, resolve_actor
from hotel_kitchen.core.timeutils import utcnow
from hotel_kitchen.database import dispose_engine, init_db
from hotel_kitchen.domain import Order
from hotel_kitchen.schemas import (
    AssignRequest,
    ErrorResponse,
    EtaOut,
    HealthResponse,
    MealPlanEnvelope,
    OrderCancelRequest,
    OrderEnvelope,
    OrderIntakeRequest,
    OrderListResponse,
    OrderModifiedRequest,
    OrderOut,
    Pagination,
    StatsEnvelope,
    StatusEntryOut,
    StatusUpdateRequest,
    TimelineEnvelope,
    TimelineOut,
    TimeSlotEnvelope,
    WorkloadEnvelope,
    meal_plan_day_out,
    time_slot_envelope,
)
from hotel_kitchen.services.kitchen.queue_builder import (
    QueueFilters,
    QueuePage,
    parse_paging,
    parse_sort,
)
from hotel_kitchen.services.kitchen.service import KitchenService, get_kitchen_service
from hotel_kitchen.services.realtime import Subscription, get_broadcaster, get_publisher, user_topic
from hotel_kitchen.services.store import get_order_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.use_real_services:
        await init_db()
        logger.info("✅ Database initialized")

    logger.info(f"✅ Order Store: {get_order_store().provider_name}")
    logger.info(f"✅ Publisher: {get_publisher().provider_name}")
    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await get_broadcaster().drain()
    await get_publisher().close()
    await dispose_engine()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Kitchen order lifecycle and real-time task queue for hotel restaurants "
        "and room service."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def order_out(service: KitchenService, order: Order, now: Optional[datetime] = None) -> OrderOut:
    """Render an order together with its ETA at ``now``."""
    return OrderOut.from_order(order, service.eta(order, now))


def ensure_own_staff(actor: Actor, staff_id: str) -> None:
    """Staff may only look at their own assignments."""
    if actor.role == Role.STAFF and actor.id != staff_id:
        raise AuthorizationError("Staff members can only view their own orders")


def page_response(service: KitchenService, page: QueuePage) -> OrderListResponse:
    now = utcnow()
    return OrderListResponse(
        data=[order_out(service, o, now) for o in page.orders],
        pagination=Pagination.from_page(page),
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "queue": "/kitchen/orders",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check() -> HealthResponse:
    """Verify the order store and the real-time transport."""
    store_status = "healthy" if await get_order_store().health_check() else "unhealthy"
    publisher_status = "healthy" if await get_publisher().health_check() else "unhealthy"

    overall = "operational" if store_status == publisher_status == "healthy" else "degraded"
    return HealthResponse(
        status=overall,
        environment=settings.env_mode.value,
        store=store_status,
        publisher=publisher_status,
        timestamp=utcnow(),
    )


# =============================================================================
# KITCHEN QUEUE ENDPOINTS
# =============================================================================

@app.get(
    "/kitchen/orders",
    response_model=OrderListResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Kitchen Queue",
)
async def list_kitchen_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderListResponse:
    """
    Active orders plus today's meal-plan orders, narrowed by search.

    status=all (or no status) shows everything not delivered or cancelled.
    """
    queue = await service.list_queue(
        QueueFilters(status=status_filter, search=search),
        parse_paging(page, limit, service.config),
        parse_sort(sort_by, sort_order),
    )
    return page_response(service, queue)


@app.post(
    "/kitchen/orders",
    response_model=OrderEnvelope,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Kitchen"],
    summary="Order Intake",
)
async def register_kitchen_order(
    body: OrderIntakeRequest,
    actor: Actor = Depends(require_permission(Permission.INTAKE_ORDERS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    """Accept a placed order into the kitchen and notify the kitchen room."""
    order = await service.register_order(body.to_domain(), actor.id)
    return OrderEnvelope(data=order_out(service, order), message="Order sent to kitchen")


@app.get(
    "/kitchen/orders/{order_id}",
    response_model=OrderEnvelope,
    responses={404: {"model": ErrorResponse}},
    tags=["Kitchen"],
)
async def get_kitchen_order(
    order_id: str,
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    """Get a specific order with priority and ETA."""
    order = await service.get_order(order_id)
    return OrderEnvelope(data=order_out(service, order))


@app.get(
    "/kitchen/orders/{order_id}/timeline",
    response_model=TimelineEnvelope,
    responses={404: {"model": ErrorResponse}},
    tags=["Kitchen"],
)
async def get_kitchen_order_timeline(
    order_id: str,
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> TimelineEnvelope:
    """Status history of an order, oldest first."""
    timeline = await service.get_timeline(order_id)
    return TimelineEnvelope(data=TimelineOut(
        order_id=timeline.order.id,
        status=timeline.order.status,
        path=timeline.path,
        history=[StatusEntryOut.from_entry(e) for e in timeline.entries],
        eta=EtaOut.from_estimate(timeline.eta),
    ))


@app.put(
    "/kitchen/orders/{order_id}/status",
    response_model=OrderEnvelope,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Update Order Status",
)
async def update_kitchen_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    actor: Actor = Depends(require_permission(Permission.UPDATE_STATUS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    order = await service.transition_order(order_id, body.status, actor.id, notes=body.notes)
    return OrderEnvelope(
        data=order_out(service, order),
        message=f"Order status updated to {order.status.value}",
    )


@app.put(
    "/kitchen/orders/{order_id}/assign",
    response_model=OrderEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Assign Order",
)
async def assign_kitchen_order(
    order_id: str,
    body: AssignRequest,
    actor: Actor = Depends(require_permission(Permission.ASSIGN_ORDERS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    order = await service.assign_order(order_id, body.staff_id, actor.id)
    return OrderEnvelope(
        data=order_out(service, order),
        message=f"Order assigned to {order.assigned_staff}",
    )


@app.post(
    "/kitchen/orders/{order_id}/modified",
    response_model=OrderEnvelope,
    responses={404: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Customer Modification Signal",
)
async def signal_kitchen_order_modified(
    order_id: str,
    body: OrderModifiedRequest,
    actor: Actor = Depends(require_permission(Permission.INTAKE_ORDERS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    order = await service.signal_modified(order_id, body.changes)
    return OrderEnvelope(data=order_out(service, order), message="Kitchen notified")


@app.post(
    "/kitchen/orders/{order_id}/cancel",
    response_model=OrderEnvelope,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Customer Cancellation Signal",
)
async def signal_kitchen_order_cancelled(
    order_id: str,
    body: OrderCancelRequest,
    actor: Actor = Depends(require_permission(Permission.INTAKE_ORDERS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderEnvelope:
    order = await service.signal_cancelled(order_id, actor.id, reason=body.reason)
    return OrderEnvelope(data=order_out(service, order), message="Order cancelled")


# =============================================================================
# STATS & PLANNING ENDPOINTS
# =============================================================================

@app.get(
    "/kitchen/stats",
    response_model=StatsEnvelope,
    tags=["Kitchen"],
    summary="Today's Kitchen Counters",
)
async def kitchen_stats(
    actor: Actor = Depends(require_permission(Permission.VIEW_STATS)),
    service: KitchenService = Depends(get_kitchen_service),
) -> StatsEnvelope:
    now = utcnow()
    return StatsEnvelope(
        data=await service.daily_stats(now),
        average_prep_time=await service.average_prep_time(now),
    )


@app.get(
    "/kitchen/staff/{staff_id}/orders",
    response_model=OrderListResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Staff Queue",
)
async def staff_kitchen_orders(
    staff_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> OrderListResponse:
    """Orders assigned to one staff member. Staff may only read their own."""
    ensure_own_staff(actor, staff_id)
    queue = await service.staff_queue(
        staff_id,
        QueueFilters(status=status_filter, search=search),
        parse_paging(page, limit, service.config),
        parse_sort(sort_by, sort_order),
    )
    return page_response(service, queue)


@app.get(
    "/kitchen/meal-plans/upcoming",
    response_model=MealPlanEnvelope,
    tags=["Kitchen"],
    summary="Upcoming Meal Plans",
)
async def upcoming_meal_plans(
    days: Optional[int] = Query(None, ge=1, le=31),
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> MealPlanEnvelope:
    now = utcnow()
    grouped = await service.upcoming_meal_plans(now, days)
    etas = {o.id: service.eta(o, now) for day in grouped for o in day.orders}
    return MealPlanEnvelope(data=[meal_plan_day_out(day, etas) for day in grouped])


@app.get(
    "/kitchen/time-slots",
    response_model=TimeSlotEnvelope,
    responses={400: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Orders by Time Slot",
)
async def kitchen_orders_by_time_slot(
    day: Optional[date] = Query(None, alias="date"),
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> TimeSlotEnvelope:
    """One service day (default today) grouped into breakfast, lunch, dinner and other."""
    now = utcnow()
    view = await service.orders_by_time_slot(day, now)
    etas = {o.id: service.eta(o, now) for o in view.orders}
    return time_slot_envelope(view, etas)


@app.get(
    "/kitchen/staff/{staff_id}/workload",
    response_model=WorkloadEnvelope,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Kitchen"],
    summary="Staff Workload",
)
async def staff_kitchen_workload(
    staff_id: str,
    actor: Actor = Depends(require_permission(Permission.VIEW_QUEUE)),
    service: KitchenService = Depends(get_kitchen_service),
) -> WorkloadEnvelope:
    ensure_own_staff(actor, staff_id)
    return WorkloadEnvelope(data=await service.staff_workload(staff_id))


# =============================================================================
# REAL-TIME ENDPOINT
# =============================================================================

async def forward_deliveries(websocket: WebSocket, subscription: Subscription) -> None:
    async for delivery in subscription:
        await websocket.send_json(delivery.to_dict())


async def answer_pings(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive_text()
        if message == "ping":
            await websocket.send_text("pong")


async def serve_socket(websocket: WebSocket, subscription: Subscription, user_id: str) -> None:
    """
    Pump events out and pings in until either side stops.

    A failed send ends the session just like a client disconnect; the
    subscription is always released.
    """
    tasks = {
        asyncio.create_task(forward_deliveries(websocket, subscription)),
        asyncio.create_task(answer_pings(websocket)),
    }
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.warning(f"Kitchen socket for {user_id} failed: {error}")
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await subscription.close()
        logger.info(f"Kitchen socket closed for {user_id}")


@app.websocket("/kitchen/ws")
async def kitchen_socket(
    websocket: WebSocket,
    user_id: Optional[str] = Query(None, alias="userId"),
    role: Optional[str] = Query(None),
) -> None:
    """
    Kitchen terminal channel.

    Joins the kitchen room and the caller's own user channel. Delivery is
    best effort; clients re-read the queue every pollIntervalSeconds.
    """
    try:
        actor = resolve_actor(user_id, role)
        if not actor.can(Permission.VIEW_QUEUE):
            raise AuthorizationError(f"Role '{actor.role.value}' cannot join the kitchen")
    except AuthorizationError as e:
        logger.warning(f"Rejected kitchen socket: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    config = get_kitchen_config()
    broadcaster = get_broadcaster()
    topics = [broadcaster.kitchen_topic, user_topic(actor.id)]
    subscription = await broadcaster.publisher.subscribe(*topics)
    logger.info(f"Kitchen socket opened for {actor.id} ({actor.role.value})")

    await websocket.send_json({
        "event": "connected",
        "payload": {
            "userId": actor.id,
            "topics": topics,
            "pollIntervalSeconds": config.poll_interval_seconds,
        },
        "timestamp": utcnow().isoformat(),
    })

    await serve_socket(websocket, subscription, actor.id)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(KitchenError)
async def kitchen_error_handler(request: Request, exc: KitchenError) -> JSONResponse:
    """Render domain errors in the standard envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid request field as a ValidationError."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    error = ValidationError(
        first.get("msg", "Invalid request"),
        field=".".join(location) or None,
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "detail": str(exc) if settings.debug else None,
        },
    )
