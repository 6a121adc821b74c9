import requests

OTX_KEY_HEADER = "X-OTX-API-KEY"


class SessionHandler:
    """Shared requests.Session with default headers and a per-request API key."""

    def __init__(self, user_agent=None, timeout=30, session=None):
        self.session = session if session is not None else requests.Session()
        self.auth_headers = {}
        self.timeout = timeout
        if user_agent:
            self.set_custom_headers({"User-Agent": user_agent})

    def set_custom_headers(self, headers_dict):
        """Set additional custom headers"""
        self.auth_headers.update(headers_dict)

    def get(self, url, headers=None, api_key=None, **kwargs):
        """GET with the default headers, sending ``api_key`` as the OTX key header for this call."""
        merged_headers = self.auth_headers.copy()
        if api_key:
            merged_headers[OTX_KEY_HEADER] = api_key
        if headers:
            merged_headers.update(headers)
        kwargs.setdefault("timeout", self.timeout)
        return self.session.get(url, headers=merged_headers, **kwargs)

    def close(self):
        self.session.close()
