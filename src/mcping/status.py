"""Decoded status response returned by a Server List Ping."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any

from mcping.errors import InvalidStatusJson
from mcping.formatting import description_to_legacy, strip_formatting

_FAVICON_PREFIX = "data:image/png;base64,"


@dataclass(frozen=True)
class Version:
    """Server software version and the protocol number it speaks."""

    name: str
    protocol: int | None = None


@dataclass(frozen=True)
class Player:
    """An entry in the online player sample."""

    name: str
    id: str


@dataclass(frozen=True)
class Players:
    """Player counts, plus the sample list some servers include."""

    online: int
    max: int
    sample: tuple[Player, ...] | None = None


@dataclass(frozen=True)
class ServerStatus:
    """The status JSON sent by the server in response to a status request.

    ``description`` is left as the raw JSON value, which is either a plain
    string or a chat component object. Use ``motd`` for its text.
    """

    version: Version
    players: Players
    description: Any = ""
    favicon: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def motd(self) -> str:
        """The description as plain text with formatting codes removed."""
        return strip_formatting(description_to_legacy(self.description))

    @property
    def legacy_motd(self) -> str:
        """The description as text with ``§`` formatting codes."""
        return description_to_legacy(self.description)

    def decode_favicon(self) -> bytes | None:
        """Return the PNG bytes of the favicon, or None if there is none.

        Raises:
            InvalidStatusJson: If the favicon is not a base64 PNG data URI.
        """
        if self.favicon is None:
            return None
        if not self.favicon.startswith(_FAVICON_PREFIX):
            msg = "Favicon is not a PNG data URI"
            raise InvalidStatusJson(msg)
        try:
            return base64.b64decode(self.favicon[len(_FAVICON_PREFIX) :], validate=True)
        except binascii.Error as e:
            msg = f"Favicon is not valid base64: {e}"
            raise InvalidStatusJson(msg) from e


def parse_status(payload: str | bytes | dict[str, Any]) -> ServerStatus:
    """Parse status JSON into a ServerStatus.

    Only ``version.name``, ``players.online`` and ``players.max`` are
    required. Unknown fields are ignored but kept in ``ServerStatus.raw``.

    Raises:
        InvalidStatusJson: If the payload is not JSON, or a required field is
            missing or has the wrong type.
    """
    if isinstance(payload, dict):
        raw = payload
    else:
        try:
            raw = json.loads(payload)
        except (ValueError, RecursionError) as e:
            msg = f"Status response is not valid JSON: {e!r}"
            raise InvalidStatusJson(msg) from e

    if not isinstance(raw, dict):
        msg = f"Status response must be a JSON object, got {type(raw).__name__}"
        raise InvalidStatusJson(msg)

    version_raw = _require(raw, "version", dict)
    players_raw = _require(raw, "players", dict)

    version = Version(
        name=_require(version_raw, "name", str, "version."),
        protocol=_optional_int(version_raw, "protocol", "version."),
    )
    players = Players(
        online=_require(players_raw, "online", int, "players."),
        max=_require(players_raw, "max", int, "players."),
        sample=_parse_sample(players_raw.get("sample")),
    )

    favicon = raw.get("favicon")
    if favicon is not None and not isinstance(favicon, str):
        msg = "Field 'favicon' must be a string"
        raise InvalidStatusJson(msg)

    return ServerStatus(
        version=version,
        players=players,
        description=raw.get("description", ""),
        favicon=favicon,
        raw=raw,
    )


def _require(obj: dict[str, Any], key: str, kind: type, prefix: str = "") -> Any:
    """Fetch a required field and check its JSON type."""
    if key not in obj:
        msg = f"Missing required field '{prefix}{key}'"
        raise InvalidStatusJson(msg)
    value = obj[key]
    # bool is a subclass of int, but true/false is never a valid count
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        msg = f"Field '{prefix}{key}' must be of type {kind.__name__}"
        raise InvalidStatusJson(msg)
    return value


def _optional_int(obj: dict[str, Any], key: str, prefix: str = "") -> int | None:
    if key not in obj:
        return None
    return _require(obj, key, int, prefix)


def _parse_sample(raw: Any) -> tuple[Player, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        msg = "Field 'players.sample' must be a list"
        raise InvalidStatusJson(msg)

    sample: list[Player] = []
    for entry in raw:
        if not isinstance(entry, dict):
            msg = "Entries in 'players.sample' must be objects"
            raise InvalidStatusJson(msg)
        sample.append(
            Player(
                name=_require(entry, "name", str, "players.sample[]."),
                id=_require(entry, "id", str, "players.sample[]."),
            )
        )
    return tuple(sample)
