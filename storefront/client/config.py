"""Client configuration read from the environment"""
import os
from dataclasses import dataclass, field

DEFAULT_API_URL = 'http://127.0.0.1:8000/api/v1'
DEFAULT_TIMEOUT = 30


def _env_timeout():
    try:
        return float(os.getenv('STOREFRONT_API_TIMEOUT', DEFAULT_TIMEOUT))
    except ValueError:
        return float(DEFAULT_TIMEOUT)


@dataclass
class ClientConfig:
    base_url: str = field(default_factory=lambda: os.getenv('STOREFRONT_API_URL', DEFAULT_API_URL))
    timeout: float = field(default_factory=_env_timeout)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"
