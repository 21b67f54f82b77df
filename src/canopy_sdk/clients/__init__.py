"""Remote collaborators: chain views, GraphQL metadata and the lending API."""

from .graphql import GraphQLClient, StakingPoolsClient, VaultMetadataClient
from .moveposition import MovePositionAPIError, MovePositionClient
from .view import AptosViewClient, ViewClient

__all__ = [
    "AptosViewClient",
    "GraphQLClient",
    "MovePositionAPIError",
    "MovePositionClient",
    "StakingPoolsClient",
    "VaultMetadataClient",
    "ViewClient",
]
