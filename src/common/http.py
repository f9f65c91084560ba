import requests
from typing import Optional
from src.common.config import config
from src.common.errors import DocumentFetchError
from src.common.logging import logger

class HttpClient:
    """
    Blocking, one-shot document retrieval for results pages.

    Results pages are static, so a failed request is reported immediately
    instead of being retried.
    """
    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout if timeout is not None else config.http_timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent or config.http_user_agent})

    def get_text(self, url: str) -> str:
        logger.info(f"Fetching {url}...")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise DocumentFetchError(url, str(e)) from e
        return response.text

_client: Optional[HttpClient] = None

def get_client() -> HttpClient:
    global _client
    if _client is None:
        _client = HttpClient()
    return _client

# --- LESSONS LEARNED ---
# 1. Some results hosts reject the default python-requests user agent.
