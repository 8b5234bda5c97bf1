"""Google Sheets sync log.

Keeps two sheets in a spreadsheet up to date after each saved-songs sync:

- ``Log``: one appended row per added or removed track
- ``Current``: the whole library, rewritten each run

Authentication uses a service account whose JSON key is passed in through
configuration (GOOGLE_TOKEN).
"""

import asyncio
from collections.abc import Sequence
import json
from typing import Any

from attrs import define, field
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from likesync.config import GoogleConfig, get_logger, require, resilient_operation
from likesync.domain.entities import Track
from likesync.domain.exceptions import AuthenticationError, ConfigurationError, TransportError

logger = get_logger(__name__).bind(service="google_sheets")

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
LOG_RANGE = "Log!A:G"
CURRENT_RANGE = "Current!A:G"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _image_formula(track: Track) -> str:
    return f'=IMAGE("{track.image_url}")' if track.image_url else ""


def _link_formula(track: Track) -> str:
    return f'=HYPERLINK("{track.link}";"Link")'


def log_row(kind: str, track: Track) -> list[str]:
    """Row appended to the Log sheet for an added or removed track."""
    return [
        kind,
        _image_formula(track),
        track.name,
        track.first_artist,
        track.album or "",
        track.id,
        _link_formula(track),
    ]


def current_row(track: Track) -> list[str]:
    """Row written to the Current sheet for a library track."""
    added_at = track.added_at.strftime(TIMESTAMP_FORMAT) if track.added_at else ""
    return [
        _image_formula(track),
        track.name,
        track.first_artist,
        track.album or "",
        added_at,
        track.id,
        _link_formula(track),
    ]


@define(slots=True)
class GoogleSheetsSyncLog:
    """Sync log collaborator writing to a spreadsheet.

    `values` is the ``spreadsheets().values()`` resource of a Sheets v4
    service; its requests are blocking and run in worker threads.
    """

    values: Any = field(repr=False)
    sheet_id: str

    @classmethod
    def from_config(cls, config: GoogleConfig) -> "GoogleSheetsSyncLog":
        """Authenticate with the service account key and build the Sheets client.

        Raises:
            ConfigurationError: If the key is missing or not a valid service account
        """
        raw_key = require(config.token, "GOOGLE_TOKEN")
        sheet_id = require(config.sheet_id, "GOOGLE_SHEET_ID")
        try:
            credentials = service_account.Credentials.from_service_account_info(
                json.loads(raw_key), scopes=[SHEETS_SCOPE]
            )
        except (json.JSONDecodeError, ValueError) as e:
            raise ConfigurationError(f"GOOGLE_TOKEN is not a valid service account key: {e!s}") from e

        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(values=service.spreadsheets().values(), sheet_id=sheet_id)

    async def _execute(self, request: Any, action: str) -> Any:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status = e.resp.status
            if status in (401, 403):
                raise AuthenticationError(f"Google rejected credentials while trying to {action}") from e
            raise TransportError(f"Google Sheets error while trying to {action}", http_status=status) from e

    async def _append(self, rows: list[list[str]], action: str) -> None:
        request = self.values.append(
            spreadsheetId=self.sheet_id,
            range=LOG_RANGE,
            valueInputOption="USER_ENTERED",
            body={"values": rows},
        )
        await self._execute(request, action)

    @resilient_operation("sheets_append_added")
    async def append_added(self, tracks: Sequence[Track]) -> None:
        if not tracks:
            return
        await self._append([log_row("Added", t) for t in tracks], "log added tracks")
        logger.debug(f"Logged {len(tracks)} added track(s)")

    @resilient_operation("sheets_append_removed")
    async def append_removed(self, tracks: Sequence[Track]) -> None:
        if not tracks:
            return
        await self._append([log_row("Removed", t) for t in tracks], "log removed tracks")
        logger.debug(f"Logged {len(tracks)} removed track(s)")

    @resilient_operation("sheets_replace_current")
    async def replace_current(self, library: Sequence[Track]) -> None:
        """Clear the Current sheet and write the whole library."""
        await self._execute(
            self.values.clear(spreadsheetId=self.sheet_id, range=CURRENT_RANGE, body={}),
            "clear the current sheet",
        )
        await self._execute(
            self.values.update(
                spreadsheetId=self.sheet_id,
                range=CURRENT_RANGE,
                valueInputOption="USER_ENTERED",
                body={"values": [current_row(t) for t in library]},
            ),
            "write the current sheet",
        )
        logger.debug(f"Wrote {len(library)} library track(s) to the current sheet")
