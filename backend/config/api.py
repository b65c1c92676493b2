"""
Django Ninja API configuration.
"""

from django.http import HttpRequest
from ninja import NinjaAPI

from apps.appointments.api import router as appointments_router
from apps.appointments.public_api import router as booking_router

api = NinjaAPI(
    title="Booking Engine API",
    version="1.0.0",
    description="Multi-tenant appointment booking: availability, conflict checks and lifecycle.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {
                "name": "appointments",
                "description": "Staff scheduling: create, reschedule and move appointments through their lifecycle",
            },
            {
                "name": "booking",
                "description": "Public booking page, addressed by organization slug",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "description": "Session token issued by the authentication layer. Include as: Authorization: Bearer <token>",
                }
            }
        },
    },
)

# Register routers
api.add_router("/appointments", appointments_router)
api.add_router("/booking", booking_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
