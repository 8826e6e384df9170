"""HTTP routes.

- POST / - Telegram webhook (secret token header)
- POST /deploy-notify - deployment announcement to subscribers
- POST /scheduled - daily broadcast trigger for an external cron
"""
from fear_greed_bot.routers.deploy import router as deploy_router
from fear_greed_bot.routers.scheduled import router as scheduled_router
from fear_greed_bot.routers.webhook import router as webhook_router

__all__ = [
    "deploy_router",
    "scheduled_router",
    "webhook_router",
]
