import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_APP_ID = "default-app-id"

# Environment variables read at startup
APP_ID_VAR = "COOKBOOK_APP_ID"
STORE_CONFIG_VAR = "COOKBOOK_STORE_CONFIG"
AUTH_TOKEN_VAR = "COOKBOOK_INITIAL_AUTH_TOKEN"


class CookbookConfig(BaseModel):
    """Startup configuration handed to the cookbook.

    ``store`` is the document store connection mapping; it needs at least a
    ``database_url`` (any SQLAlchemy URL). An empty mapping means the store
    is not configured, which the cookbook treats as a fatal startup error.
    """

    app_id: str = Field(default=DEFAULT_APP_ID, min_length=1)
    store: Dict[str, Any] = Field(default_factory=dict)
    initial_auth_token: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CookbookConfig":
        env = os.environ if environ is None else environ
        return cls(
            app_id=env.get(APP_ID_VAR) or DEFAULT_APP_ID,
            store=_parse_store_config(env.get(STORE_CONFIG_VAR)),
            initial_auth_token=env.get(AUTH_TOKEN_VAR) or None,
        )


def _parse_store_config(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"{STORE_CONFIG_VAR} is not valid JSON: {e}")
        return {}
    if not isinstance(value, dict):
        logger.error(f"{STORE_CONFIG_VAR} must be a JSON object")
        return {}
    return value


def load_config(dotenv_path: Optional[str] = None) -> CookbookConfig:
    """Read configuration from the environment, after loading a .env file."""
    load_dotenv(dotenv_path)
    return CookbookConfig.from_env()
