import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse

from .accesslink import AccessLinkClient
from .deps import get_accesslink_client, get_oauth_client
from .oauth import PolarOAuthClient
from .schemas import CallbackResponse

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_USER = "test-user"


@router.get("/polar")
def start_polar_auth(
    user: str = Query(DEFAULT_USER),
    oauth: PolarOAuthClient = Depends(get_oauth_client),
):
    """Redirect the browser to the Polar consent screen."""
    return RedirectResponse(url=oauth.start_authorization(user), status_code=302)


@router.get("/polar/callback", response_model=CallbackResponse)
async def polar_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth: PolarOAuthClient = Depends(get_oauth_client),
    accesslink: AccessLinkClient = Depends(get_accesslink_client),
):
    """
    Handle the Polar OAuth callback.
    Exchange the code for a token, then register the user with AccessLink.
    """
    if error:
        logger.warning(f"Polar authorization denied: {error}")
        return JSONResponse(status_code=400, content={"error": f"Authorization failed: {error}"})

    if not code or not state:
        return JSONResponse(status_code=400, content={"error": "Missing authorization code or state"})

    result = await oauth.complete_authorization(code, state)
    outcome = await accesslink.register_user(result.user_id)
    logger.info(f"Polar account connected for {result.user_id} ({outcome.value})")

    return CallbackResponse(
        success=True,
        message="Polar account connected successfully!",
        user_id=result.user_id,
        next_step=f"/health-data/{result.user_id}",
    )
