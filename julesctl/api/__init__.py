from .http_client import API_KEY_HEADER, JulesClient, build_url

__all__ = ["API_KEY_HEADER", "JulesClient", "build_url"]
