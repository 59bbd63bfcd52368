import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from .aggregator import HealthAggregator
from .deps import get_aggregator, get_token_store
from .errors import NoCredential
from .schemas import HealthSnapshot
from .stores import TokenStore

router = APIRouter()
logger = logging.getLogger(__name__)

LANDING_PAGE = """
<h1>🏃‍♂️ Polar Health Integration</h1>
<p><a href="/auth/polar">Connect Your Polar Account</a></p>
<p><a href="/health-data/test-user">View Sample Health Data</a></p>
<style>
    body { font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px; }
    h1 { color: #667eea; }
    a { color: #667eea; text-decoration: none; background: #f0f0f0; padding: 10px 20px; border-radius: 5px; display: inline-block; margin: 10px 0; }
    a:hover { background: #667eea; color: white; }
</style>
"""


@router.get("/", response_class=HTMLResponse)
def landing_page():
    return LANDING_PAGE


@router.get("/health-data/{user_id}", response_model=HealthSnapshot)
async def get_health_data(
    user_id: str,
    tokens: TokenStore = Depends(get_token_store),
    aggregator: HealthAggregator = Depends(get_aggregator),
):
    """Aggregated activity and exercise data for an authorized user."""
    if user_id not in tokens:
        raise NoCredential(user_id)
    return await aggregator.build_snapshot(user_id)
