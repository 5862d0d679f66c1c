"""google-genai client factory.

Two backends are supported:

- Gemini Developer API (API key), needed for the Files API upload path.
- Vertex AI (project + location, Application Default Credentials), used
  when videos are referenced directly from Cloud Storage.

Usage:
    from veoprompt.services.genai_client import get_genai_client

    client = get_genai_client(settings)                     # Developer API
    client = get_genai_client(settings, vertexai=True)      # Vertex AI
"""

from google import genai

from veoprompt.config import Settings
from veoprompt.errors import ConfigurationError

# Clients keyed by (backend, credential, location)
_clients: dict[tuple[str, str, str], genai.Client] = {}


def get_genai_client(settings: Settings, vertexai: bool = False) -> genai.Client:
    """Get or create a genai client for the requested backend.

    Clients are cached per credential set so repeated calls are cheap.

    Raises:
        ConfigurationError: If the backend's required settings are missing.
    """
    if vertexai:
        project = settings.google_cloud.project_id
        if not project:
            raise ConfigurationError(
                "Google Cloud project is not configured. "
                "Set GOOGLE_CLOUD_PROJECT (or google_cloud.project_id in config.yaml) "
                "to analyze videos through Vertex AI."
            )
        location = settings.google_cloud.location
        key = ("vertex", project, location)
        if key not in _clients:
            _clients[key] = genai.Client(vertexai=True, project=project, location=location)
        return _clients[key]

    api_key = settings.gemini.api_key
    if not api_key:
        raise ConfigurationError(
            "Gemini API key is not configured. "
            "Set GEMINI_API_KEY (or gemini.api_key in config.yaml) and restart."
        )
    key = ("developer", api_key, "")
    if key not in _clients:
        _clients[key] = genai.Client(api_key=api_key)
    return _clients[key]


def clear_client_cache() -> None:
    """Drop cached clients (used when settings change at runtime and in tests)."""
    _clients.clear()
