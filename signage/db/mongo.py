from __future__ import annotations

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from signage.core.config import Settings


class Mongo:
    def __init__(self, client: MongoClient, db: Database, contents_collection: str = "contents"):
        self.client = client
        self.db = db
        self._contents_collection = contents_collection

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mongo":
        # MongoClient connects lazily; nothing blocks here
        client = MongoClient(settings.mongo_url, tz_aware=True)
        return cls(client, client[settings.mongo_db], settings.contents_collection)

    @property
    def contents(self) -> Collection:
        return self.db[self._contents_collection]

    def close(self) -> None:
        self.client.close()
