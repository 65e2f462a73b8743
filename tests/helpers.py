from datetime import timedelta
from typing import List, Optional

from sqlalchemy import update

from gameshelf.models import utcnow
from gameshelf.schemas import ProviderGame


class FakeProvider:
    def __init__(self, records: Optional[List[ProviderGame]] = None):
        self.records = {record.id: record for record in records or []}
        self.searches = []

    def search(self, query: str, limit: int = 10) -> List[ProviderGame]:
        self.searches.append((query, limit))
        matches = [record for record in self.records.values() if query.lower() in record.name.lower()]
        return matches[:limit]

    def fetch_by_id(self, igdb_id: int) -> Optional[ProviderGame]:
        return self.records.get(igdb_id)


def provider_record(**overrides) -> ProviderGame:
    payload = {
        "id": 1942,
        "name": "The Witcher 3: Wild Hunt",
        "summary": "A story-driven open world RPG.",
        "storyline": "Geralt searches for Ciri.",
        "rating": 93.5,
        "first_release_date": 1431993600,
        "cover": {"id": 1, "url": "//images.igdb.com/igdb/image/upload/t_thumb/co1wyy.jpg"},
        "screenshots": [
            {"id": 2, "url": "//images.igdb.com/igdb/image/upload/t_thumb/sc1.jpg"},
            {"id": 3, "url": "//images.igdb.com/igdb/image/upload/t_thumb/sc2.jpg"},
        ],
        "genres": [{"id": 12, "name": "Role-playing (RPG)"}, {"id": 31, "name": "Adventure"}],
        "platforms": [{"id": 6, "name": "PC (Microsoft Windows)"}],
        "involved_companies": [
            {"company": {"id": 908, "name": "CD Projekt RED"}, "developer": True, "publisher": False},
            {"company": {"id": 1, "name": "Warner Bros."}, "developer": False, "publisher": True},
        ],
    }
    payload.update(overrides)
    return ProviderGame.model_validate(payload)


def set_created_at(database, model, row_id, offset_seconds):
    with database.session() as db:
        db.execute(
            update(model)
            .where(model.id == row_id)
            .values(created_at=utcnow() - timedelta(seconds=offset_seconds))
        )
        db.commit()


def login_headers(client, username, password):
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}
