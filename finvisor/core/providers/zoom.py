"""
Zoom Provider
=============

Advisor meetings. ``ZoomDemoService`` serves fixed meeting data and is used
while ``zoom_demo_mode`` is on; ``ZoomClient`` talks to the Zoom API with
server-to-server OAuth.
"""

import asyncio
import base64
import hashlib
import hmac
import re
import time
from typing import Any, Dict, List, Optional

import aiohttp

from finvisor.config.settings import Settings
from .base import ProviderClient, ProviderError

DEMO_MEETING_ID = "demo-12345"
DEMO_JOIN_URL = "https://zoom.us/j/DEMO_MEETING"
DEMO_START_URL = "https://zoom.us/s/DEMO_START"
DEMO_PASSWORD = "123456"
DEMO_TOPIC = "Demo Advisory Session"

DEMO_INSIGHTS = [
    "Demo insight: recommend follow-up email within 7 days.",
    "Demo insight: gather additional financial documentation.",
]

# Refresh the OAuth token this many seconds before Zoom expires it
TOKEN_EXPIRY_MARGIN = 60

_VTT_TIMING = re.compile(
    r"(\d{2}):(\d{2}):(\d{2})\.(\d{3})\s*-->\s*(\d{2}):(\d{2}):(\d{2})\.(\d{3})"
)


def _seconds(h: str, m: str, s: str, ms: str) -> float:
    return int(h) * 3600 + int(m) * 60 + int(s) + int(ms) / 1000


def parse_vtt(vtt: str) -> List[Dict[str, Any]]:
    """
    Parse a Zoom WebVTT transcript into cues.

    Zoom writes each cue body as ``Speaker Name: text``; cues without a
    speaker prefix get ``Unknown``.

    Returns:
        ``[{"speaker_name", "text", "start_time", "end_time"}]`` in seconds
    """
    cues = []
    for block in re.split(r"\n\s*\n", vtt.replace("\r\n", "\n")):
        lines = [line.strip() for line in block.strip().split("\n") if line.strip()]
        for i, line in enumerate(lines):
            timing = _VTT_TIMING.search(line)
            if not timing:
                continue
            body = " ".join(lines[i + 1:])
            if not body:
                break
            speaker, sep, text = body.partition(": ")
            if not sep:
                speaker, text = "Unknown", body
            groups = timing.groups()
            cues.append(
                {
                    "speaker_name": speaker,
                    "text": text,
                    "start_time": _seconds(*groups[:4]),
                    "end_time": _seconds(*groups[4:]),
                }
            )
            break
    return cues


def process_webhook_event(payload: Dict[str, Any], secret: Optional[str]) -> Dict[str, Any]:
    """
    Handle a Zoom webhook delivery.

    ``endpoint.url_validation`` is answered with the HMAC-SHA256 of the plain
    token keyed by the webhook secret. Other events are reduced to their
    name, meeting id and object.

    Raises:
        ValueError: URL validation requested without a configured secret
    """
    event = payload.get("event") or "unknown"
    body = payload.get("payload") or {}

    if event == "endpoint.url_validation":
        if not secret:
            raise ValueError("ZOOM_WEBHOOK_SECRET_TOKEN environment variable is required")
        plain_token = str(body.get("plainToken", ""))
        digest = hmac.new(secret.encode(), plain_token.encode(), hashlib.sha256).hexdigest()
        return {"plainToken": plain_token, "encryptedToken": digest}

    meeting = body.get("object") or {}
    return {"event": event, "meetingId": meeting.get("id"), "data": meeting}


class ZoomDemoService:
    """Fixed meeting data for presentations; needs no credentials."""

    def create_meeting(
        self,
        topic: Optional[str] = None,
        duration: Optional[int] = None,
        scheduled_time: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "meetingId": DEMO_MEETING_ID,
            "joinUrl": DEMO_JOIN_URL,
            "startUrl": DEMO_START_URL,
            "password": DEMO_PASSWORD,
            "scheduledTime": scheduled_time or "instant",
            "topic": topic or DEMO_TOPIC,
            "duration": duration or 30,
            "instructions": [
                "Demo mode: no real Zoom meeting was created.",
                "Use this mock URL for presentation purposes.",
            ],
        }

    def get_meeting(self, meeting_id: Optional[str] = None) -> Dict[str, Any]:
        return {
            "id": DEMO_MEETING_ID,
            "topic": DEMO_TOPIC,
            "status": "waiting",
            "join_url": DEMO_JOIN_URL,
            "start_url": DEMO_START_URL,
            "password": DEMO_PASSWORD,
        }

    def get_transcript(self, meeting_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            {
                "speaker_name": "Advisor",
                "text": "Welcome to the Finvisor demo session.",
                "start_time": 0,
                "end_time": 5,
            },
            {
                "speaker_name": "Student",
                "text": "Thank you for helping me with my appeal.",
                "start_time": 5,
                "end_time": 10,
            },
        ]

    def summarize(self, meeting_id: Optional[str] = None) -> Dict[str, Any]:
        return {
            "summary": "Demo summary of financial aid appeal discussion.",
            "keyPoints": ["Reviewed appeal documentation", "Discussed negotiation strategy"],
            "actionItems": ["Submit appeal by Friday", "Prepare follow-up email"],
            "followUpNeeded": True,
        }

    def analyze_transcript(self, transcript: List[Any]) -> Dict[str, Any]:
        return {"insights": list(DEMO_INSIGHTS), "transcriptLength": len(transcript)}

    def process_webhook(self, payload: Dict[str, Any]) -> Dict[str, str]:
        return {"received": "demo.webhook"}


class ZoomClient(ProviderClient):
    """Zoom REST client authenticated with an account-credentials OAuth token."""

    provider_name = "zoom"

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def _base_url(self) -> str:
        return self.settings.zoom_api_url

    def missing_credentials(self) -> List[str]:
        required = {
            "ZOOM_ACCOUNT_ID": self.settings.zoom_account_id,
            "ZOOM_CLIENT_ID": self.settings.zoom_client_id,
            "ZOOM_CLIENT_SECRET": self.settings.zoom_client_secret,
        }
        return [name for name, value in required.items() if not value]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    async def _access_token(self) -> str:
        """Fetch a token, reusing the cached one until shortly before expiry."""
        if self._token and time.time() < self._token_expires_at:
            return self._token

        self._ensure_configured()
        credentials = f"{self.settings.zoom_client_id}:{self.settings.zoom_client_secret}"
        auth = base64.b64encode(credentials.encode()).decode()

        try:
            session = await self._get_session()
            async with session.post(
                self.settings.zoom_oauth_url,
                params={
                    "grant_type": "account_credentials",
                    "account_id": self.settings.zoom_account_id,
                },
                headers={"Authorization": f"Basic {auth}"},
            ) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    raise ProviderError(
                        f"zoom token request failed: {response.status} - {error_text}",
                        provider=self.provider_name,
                        status_code=response.status,
                    )
                token = await response.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderError(f"zoom token request failed: {e}", provider=self.provider_name) from e

        access_token = token.get("access_token") if isinstance(token, dict) else None
        if not access_token:
            raise ProviderError(
                "zoom token request failed: response has no access_token",
                provider=self.provider_name,
            )

        self._token = access_token
        self._token_expires_at = time.time() + int(token.get("expires_in", 3600)) - TOKEN_EXPIRY_MARGIN
        self.logger.debug("Zoom access token refreshed")
        return self._token

    async def _authorized_request(self, method: str, path: str, **kwargs: Any) -> Any:
        await self._access_token()
        return await self._request(method, path, **kwargs)

    async def create_meeting(
        self,
        topic: Optional[str] = None,
        duration: Optional[int] = None,
        scheduled_time: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an advisor meeting; instant unless ``scheduled_time`` is given."""
        body: Dict[str, Any] = {
            "topic": topic or "Finvisor Advisory Session",
            "type": 2 if scheduled_time else 1,
            "duration": duration or 30,
            "settings": {
                "join_before_host": False,
                "waiting_room": True,
                "auto_recording": "cloud",
            },
        }
        if scheduled_time:
            body["start_time"] = scheduled_time

        meeting = await self._authorized_request("POST", "/users/me/meetings", json_body=body)
        self.logger.info("Zoom meeting created", meeting_id=meeting.get("id"))
        return {
            "meetingId": meeting.get("id"),
            "joinUrl": meeting.get("join_url"),
            "startUrl": meeting.get("start_url"),
            "password": meeting.get("password"),
            "scheduledTime": scheduled_time or "instant",
            "topic": meeting.get("topic"),
            "duration": meeting.get("duration"),
        }

    async def get_meeting(self, meeting_id: str) -> Dict[str, Any]:
        return await self._authorized_request("GET", f"/meetings/{meeting_id}")

    async def get_transcript(self, meeting_id: str) -> List[Dict[str, Any]]:
        """Download and parse the cloud-recording transcript; empty when none exists."""
        recordings = await self._authorized_request("GET", f"/meetings/{meeting_id}/recordings")
        transcript_file = next(
            (
                f
                for f in recordings.get("recording_files") or []
                if f.get("file_type") == "TRANSCRIPT"
            ),
            None,
        )
        if not transcript_file:
            return []

        try:
            session = await self._get_session()
            async with session.get(
                transcript_file["download_url"], headers=self._headers()
            ) as response:
                if response.status >= 400:
                    raise ProviderError(
                        f"zoom transcript download failed: {response.status}",
                        provider=self.provider_name,
                        status_code=response.status,
                    )
                vtt = await response.text()
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"zoom transcript download failed: {e}", provider=self.provider_name
            ) from e

        return parse_vtt(vtt)


# Global instances
_zoom_client: Optional[ZoomClient] = None
_zoom_demo_service = ZoomDemoService()


def get_zoom_demo_service() -> ZoomDemoService:
    return _zoom_demo_service


def get_zoom_client() -> ZoomClient:
    """Get or create the global Zoom client."""
    global _zoom_client
    if _zoom_client is None:
        _zoom_client = ZoomClient()
    return _zoom_client


async def close_zoom_client() -> None:
    """Close the global Zoom client."""
    global _zoom_client
    if _zoom_client:
        await _zoom_client.close()
        _zoom_client = None
