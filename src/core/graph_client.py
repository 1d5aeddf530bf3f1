"""
MS Graph client setup with lazy initialization.

The calendar provider is reached through an app registration using the
client-credentials flow, so no interactive OAuth step is needed at runtime.
"""

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from core.config import GRAPH_APP_ID, GRAPH_CLIENT_SECRET, GRAPH_TENANT_ID, ConfigError

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]

_graph_client: GraphServiceClient | None = None


def get_graph_client() -> GraphServiceClient:
    """
    Get or create the MS Graph client (lazy initialization).

    Raises:
        ConfigError: if the app registration credentials are not configured
    """
    global _graph_client
    if _graph_client is None:
        missing = [
            name
            for name, value in (
                ("MICROSOFT_GRAPH_TENANT_ID", GRAPH_TENANT_ID),
                ("MICROSOFT_GRAPH_APP_ID", GRAPH_APP_ID),
                ("MICROSOFT_GRAPH_CLIENT_SECRET", GRAPH_CLIENT_SECRET),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Calendar provider not configured: {', '.join(missing)}")

        credential = ClientSecretCredential(
            tenant_id=GRAPH_TENANT_ID,
            client_id=GRAPH_APP_ID,
            client_secret=GRAPH_CLIENT_SECRET,
        )
        _graph_client = GraphServiceClient(credentials=credential, scopes=GRAPH_SCOPES)
    return _graph_client
