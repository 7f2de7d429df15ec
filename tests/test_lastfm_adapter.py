"""Last.fm scrobble adapter tests."""

import pytest

from statusboard.exceptions import TransportError, UnexpectedShapeError
from statusboard.services.lastfm import LastfmScrobbleAdapter

from fakes import FakeJsonClient

# 2024-01-01T00:05:00Z, five minutes before the frozen clock
SCROBBLED_AT = "1704067500"

TRACK = {
    "artist": {"#text": "Boards of Canada"},
    "album": {"#text": "Geogaddi"},
    "name": "Dawn Chorus",
    "url": "https://www.last.fm/music/Boards+of+Canada/_/Dawn+Chorus",
    "image": [
        {"size": "small", "#text": "small.png"},
        {"size": "medium", "#text": "medium.png"},
    ],
    "date": {"uts": SCROBBLED_AT, "#text": "01 Jan 2024, 00:05"},
}


def _response(track: object) -> dict:
    return {"recenttracks": {"track": track}}


def _adapter(payload: object, clock) -> tuple[LastfmScrobbleAdapter, FakeJsonClient]:
    client = FakeJsonClient({"/2.0/": payload})
    return LastfmScrobbleAdapter(client, api_key="key", clock=clock), client


@pytest.mark.asyncio
async def test_single_track_object(clock) -> None:
    adapter, client = _adapter(_response(TRACK), clock)

    update = await adapter.fetch_update("alice_fm")

    assert update.artist == "Boards of Canada"
    assert update.album == "Geogaddi"
    assert update.track == "Dawn Chorus"
    assert update.now_playing is False
    assert update.relative_time == "5 minutes ago"
    assert update.image == "small.png"

    _, params, _ = client.calls[0]
    assert params["method"] == "user.getrecenttracks"
    assert params["user"] == "alice_fm"
    assert params["limit"] == "1"
    assert params["api_key"] == "key"


@pytest.mark.asyncio
async def test_track_list_uses_first_element(clock) -> None:
    other = {**TRACK, "name": "Music Is Math"}
    adapter, _ = _adapter(_response([TRACK, other]), clock)

    update = await adapter.fetch_update("alice_fm")

    assert update.track == "Dawn Chorus"


@pytest.mark.asyncio
async def test_now_playing_suppresses_relative_time(clock) -> None:
    playing = {**TRACK, "@attr": {"nowplaying": "true"}}
    adapter, _ = _adapter(_response(playing), clock)

    update = await adapter.fetch_update("alice_fm")

    assert update.now_playing is True
    assert update.relative_time is None
    assert update.occurred_at is None


@pytest.mark.asyncio
async def test_image_omitted_without_small_variant(clock) -> None:
    track = {**TRACK, "image": [{"size": "large", "#text": "large.png"}]}
    adapter, _ = _adapter(_response(track), clock)

    update = await adapter.fetch_update("alice_fm")

    assert update.image is None


@pytest.mark.asyncio
async def test_missing_date_leaves_relative_time_unset(clock) -> None:
    track = {k: v for k, v in TRACK.items() if k != "date"}
    adapter, _ = _adapter(_response(track), clock)

    update = await adapter.fetch_update("alice_fm")

    assert update.relative_time is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"recenttracks": {}}, _response([])])
async def test_missing_track_is_unexpected_shape(payload, clock) -> None:
    adapter, _ = _adapter(payload, clock)

    with pytest.raises(UnexpectedShapeError):
        await adapter.fetch_update("alice_fm")


@pytest.mark.asyncio
async def test_error_envelope_is_transport_error(clock) -> None:
    adapter, _ = _adapter({"error": 6, "message": "User not found"}, clock)

    with pytest.raises(TransportError, match="User not found"):
        await adapter.fetch_update("ghost")
