from fastapi import Request

from .accesslink import AccessLinkClient
from .aggregator import HealthAggregator
from .oauth import PolarOAuthClient
from .stores import TokenStore

# Everything is built once in the app lifespan and hung off app.state


def get_oauth_client(request: Request) -> PolarOAuthClient:
    return request.app.state.oauth_client


def get_accesslink_client(request: Request) -> AccessLinkClient:
    return request.app.state.accesslink_client


def get_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.aggregator


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.tokens
