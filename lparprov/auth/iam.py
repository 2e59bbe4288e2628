import logging
from typing import Optional

import requests

from ..errors import AuthenticationError
from ..utils.extract import extract_first, parse_json

logger = logging.getLogger(__name__)

APIKEY_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"


class IamTokenClient:
    def __init__(
        self,
        token_url: str = "https://iam.cloud.ibm.com/identity/token",
        timeout: Optional[float] = None,
    ) -> None:
        self.token_url = token_url
        self.timeout = timeout

    def fetch_token(self, api_key: str) -> str:
        """Exchange an API key for an IAM bearer token."""
        try:
            resp = requests.post(
                self.token_url,
                data={"grant_type": APIKEY_GRANT_TYPE, "apikey": api_key},
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthenticationError(
                f"IAM token request failed: {exc}", step="IAM_TOKEN_RETRIEVAL"
            ) from exc

        token = extract_first(parse_json(resp.text), [("access_token",)])
        if token is None:
            raise AuthenticationError(
                f"IAM token retrieval failed (HTTP {resp.status_code})",
                step="IAM_TOKEN_RETRIEVAL",
                response=resp.text,
            )
        logger.debug(f"IAM token retrieved from {self.token_url}")
        return token
