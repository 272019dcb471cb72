"""FastAPI dependencies for process-wide collaborators."""

from fastapi import Request

from crm.core.errors import ConfigurationError
from crm.services.gallabox import GallaboxClient


async def get_gallabox(request: Request) -> GallaboxClient:
    """Return the Gallabox client built at startup.

    Raises ConfigurationError (500) when GALLABOX_API_KEY was not configured,
    so only the WhatsApp endpoints fail and the rest of the API keeps working.
    """
    client = getattr(request.app.state, "gallabox", None)
    if client is None:
        raise ConfigurationError("GALLABOX_API_KEY is not set")
    return client
