from fastapi import APIRouter
from crm.api.v1.endpoints import leads, activities, follow_ups, analytics, gallabox, webhooks

api_router = APIRouter()
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(activities.router, prefix="/activities", tags=["activities"])
api_router.include_router(follow_ups.router, prefix="/follow-ups", tags=["follow-ups"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(gallabox.router, prefix="/gallabox", tags=["gallabox"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
