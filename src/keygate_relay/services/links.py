"""Link issuing for the ad-unlock flow.

A link pairs the URL the user follows to the ad network with the callback
URL the network hits once the ad is done. Issuing a link registers the key
as pending.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from keygate_relay.core.security import create_callback_token
from keygate_relay.core.settings import Settings
from keygate_relay.models import PendingRequest
from keygate_relay.services.tracker import CompletionTracker, validate_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedLink:
    """URLs handed to the key-gate frontend."""

    ad_url: str
    callback_url: str
    pending: PendingRequest


class LinkIssuer:
    """Builds ad/callback URLs and registers the pending request."""

    def __init__(self, tracker: CompletionTracker, settings: Settings) -> None:
        self._tracker = tracker
        self._settings = settings

    def build_callback_url(self, user_id: str, script_id: str, key_index: int) -> str:
        params: dict[str, Any] = {
            "user_id": user_id,
            "script_id": script_id,
            "key_index": key_index,
        }
        if self._settings.callback_auth_enabled:
            params["token"] = create_callback_token(
                self._settings, user_id, script_id, key_index
            )
        return f"{self._settings.callback_url_base}?{urlencode(params)}"

    def build_ad_url(self, callback_url: str) -> str:
        template = self._settings.ad_network_url
        if not template:
            return callback_url
        return template.replace("{callback_url}", quote(callback_url, safe=""))

    def issue(self, user_id: Any, script_id: Any, key_index: Any) -> IssuedLink:
        """Create the link pair for one key and mark the key pending."""
        key = validate_key(user_id, script_id, key_index)
        callback_url = self.build_callback_url(key.user_id, key.script_id, key.key_index)
        ad_url = self.build_ad_url(callback_url)
        pending = self._tracker.register_pending(
            key.user_id,
            key.script_id,
            key.key_index,
            metadata={"callback_url": callback_url, "ad_url": ad_url},
        )
        return IssuedLink(ad_url=ad_url, callback_url=callback_url, pending=pending)
