"""
BigBlueButton API client.

Supplies what the coordinator needs from the conference gateway:
- the moderator password of a running meeting (getMeetingInfo)
- signed join URLs for each synthetic participant

Every call is signed with hex(hash(call_name + query_string + secret)).
"""

import hashlib
import logging
import xml.etree.ElementTree as ET
from typing import Optional
from urllib.parse import urlencode

import httpx

from tool_modules.aa_bbb_stress.src.config import GatewayConfig, get_config
from tool_modules.aa_bbb_stress.src.errors import CredentialFetchFailure, GatewayError

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("sha1", "sha256", "sha384", "sha512")


def normalize_api_url(url: str) -> str:
    """Return the API root, always ending in /api/."""
    url = url.strip().rstrip("/")
    if not url.endswith("/api"):
        url = f"{url}/api"
    return f"{url}/"


class BigBlueButtonClient:
    """Signed calls against the BigBlueButton API."""

    def __init__(
        self,
        url: str,
        secret: str,
        checksum_algorithm: str = "sha1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise GatewayError("BigBlueButton URL is not configured (set BBB_URL)")
        if not secret:
            raise GatewayError("BigBlueButton secret is not configured (set BBB_SECRET)")
        algorithm = checksum_algorithm.lower()
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise GatewayError(f"Unsupported checksum algorithm: {checksum_algorithm}")

        self.api_url = normalize_api_url(url)
        self.secret = secret
        self.checksum_algorithm = algorithm
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: Optional[GatewayConfig] = None, **kwargs
    ) -> "BigBlueButtonClient":
        config = config or get_config().gateway
        return cls(
            url=config.url,
            secret=config.secret,
            checksum_algorithm=config.checksum_algorithm,
            timeout=config.request_timeout,
            **kwargs,
        )

    def checksum(self, call_name: str, query: str) -> str:
        digest = hashlib.new(self.checksum_algorithm)
        digest.update(f"{call_name}{query}{self.secret}".encode())
        return digest.hexdigest()

    def build_url(self, call_name: str, params: dict) -> str:
        query = urlencode(params)
        checksum = self.checksum(call_name, query)
        separator = "&" if query else ""
        return f"{self.api_url}{call_name}?{query}{separator}checksum={checksum}"

    def get_join_url(self, full_name: str, meeting_id: str, password: str) -> str:
        """Build a signed join URL for one participant."""
        return self.build_url(
            "join",
            {
                "fullName": full_name,
                "meetingID": meeting_id,
                "password": password,
                "redirect": "true",
            },
        )

    async def get_moderator_password(self, meeting_id: str) -> str:
        """
        Fetch the moderator password of a running meeting.

        Raises:
            CredentialFetchFailure: On HTTP errors, FAILED return codes or a
                response without a moderatorPW.
        """
        url = self.build_url("getMeetingInfo", {"meetingID": meeting_id})
        logger.info(f"[GATEWAY] Fetching moderator password for meeting {meeting_id}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise CredentialFetchFailure(f"getMeetingInfo request failed: {e}") from e

        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as e:
            raise CredentialFetchFailure(f"Invalid getMeetingInfo response: {e}") from e

        if root.findtext("returncode") != "SUCCESS":
            key = root.findtext("messageKey") or "unknown"
            message = root.findtext("message") or "no message"
            raise CredentialFetchFailure(f"getMeetingInfo failed ({key}): {message}")

        password = root.findtext("moderatorPW")
        if not password:
            raise CredentialFetchFailure("getMeetingInfo response has no moderatorPW")

        return password
