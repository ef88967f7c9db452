import logging
import time

from api.health.schemas import BotIdentity, HealthResponse
from bot_dispatcher import BotDispatcher
from utils import utc_now_iso

logger = logging.getLogger(__name__)


async def build_health(dispatcher: BotDispatcher | None, started_at: float) -> HealthResponse:
    uptime = round(time.monotonic() - started_at, 3)
    if dispatcher is None:
        return HealthResponse(timestamp=utc_now_iso(), uptime=uptime)

    try:
        me = await dispatcher.get_bot_info()
        bot = BotIdentity(id=me["id"], username=me.get("username"), first_name=me.get("first_name"))
    except Exception:
        logger.warning("Health check could not resolve bot identity")
        return HealthResponse(timestamp=utc_now_iso(), uptime=uptime, bot_error="Unable to get bot info")

    return HealthResponse(timestamp=utc_now_iso(), uptime=uptime, bot=bot)
