from datetime import date

import pytest

from gameshelf.core.errors import NotFound
from gameshelf.services.metadata import (
    METADATA_COLUMNS,
    denormalize,
    epoch_to_date,
    first_company,
    resize_image_url,
    sync_game_metadata,
)

from .helpers import FakeProvider, provider_record


def test_epoch_to_date():
    assert epoch_to_date(0) == date(1970, 1, 1)
    assert epoch_to_date(1431993600) == date(2015, 5, 19)
    assert epoch_to_date(None) is None


def test_resize_image_url():
    assert (
        resize_image_url("//images.igdb.com/igdb/image/upload/t_thumb/co1.jpg", "t_cover_big")
        == "https://images.igdb.com/igdb/image/upload/t_cover_big/co1.jpg"
    )
    assert resize_image_url("https://cdn.example/t_thumb/x.png", "t_screenshot_med") == (
        "https://cdn.example/t_screenshot_med/x.png"
    )
    assert resize_image_url(None, "t_cover_big") is None


def test_first_flagged_company_wins():
    record = provider_record(
        involved_companies=[
            {"company": {"id": 1, "name": "Porting House"}, "developer": False, "publisher": False},
            {"company": {"id": 2, "name": "Lead Studio"}, "developer": True, "publisher": True},
            {"company": {"id": 3, "name": "Support Studio"}, "developer": True, "publisher": False},
        ]
    )
    assert first_company(record.involved_companies, "developer") == "Lead Studio"
    assert first_company(record.involved_companies, "publisher") == "Lead Studio"
    assert first_company(None, "developer") is None


def test_denormalize_handles_sparse_record():
    values = denormalize(provider_record(
        summary=None,
        storyline=None,
        rating=None,
        first_release_date=None,
        cover=None,
        screenshots=None,
        genres=None,
        platforms=None,
        involved_companies=None,
    ))
    assert set(values) == set(METADATA_COLUMNS)
    assert all(value is None for value in values.values())


def test_denormalize_strips_markup_from_text():
    values = denormalize(provider_record(summary="<p>Fight <b>gods</b> &amp; monsters</p>"))
    assert values["summary"] == "Fight gods & monsters"


def test_denormalize_never_touches_catalog_fields():
    values = denormalize(provider_record())
    for column in ("name", "is_available", "file_path", "file_size", "added_by"):
        assert column not in values


def test_sync_without_external_id_returns_game_unchanged(catalog):
    game = catalog.create_game("Homebrew")
    provider = FakeProvider([provider_record()])
    synced = sync_game_metadata(catalog, provider, game.id)
    assert synced.id == game.id
    assert synced.developer is None


def test_sync_with_unknown_external_id(catalog):
    game = catalog.create_game("Lost", igdb_id=404)
    with pytest.raises(NotFound):
        sync_game_metadata(catalog, FakeProvider([provider_record()]), game.id)


def test_sync_missing_game(catalog):
    with pytest.raises(NotFound):
        sync_game_metadata(catalog, FakeProvider(), "missing")


def test_sync_applies_provider_record(catalog):
    game = catalog.create_game("Witcher", igdb_id=1942)
    synced = sync_game_metadata(catalog, FakeProvider([provider_record()]), game.id)
    assert synced.developer == "CD Projekt RED"
    assert synced.publisher == "Warner Bros."
