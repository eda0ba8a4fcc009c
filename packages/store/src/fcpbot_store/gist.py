"""GistStore — zero-infrastructure ledger kept in a GitHub Gist.

Handy when fcpbot runs from a scheduled CI job with no persistent disk: the
ledger lives in a private Gist and the job only needs a token with `gist`
scope.

Data format: a single JSON file named `fcpbot_ledger.json` inside the Gist,
holding one object keyed by proposal id whose values are LedgerEntry dicts.
"""

from __future__ import annotations

import json
import logging

from github import Auth, Github, GithubException, InputFileContent

from fcpbot_store.base import BaseStore, StoreError
from fcpbot_store.models import LedgerEntry

logger = logging.getLogger(__name__)

_GIST_FILENAME = "fcpbot_ledger.json"


class GistStore(BaseStore):
    """Stores the ledger as one JSON object in a GitHub Gist file.

    The file is read once per store instance and cached; every put() writes
    the whole object back. fcpbot is the only writer, so the cache cannot go
    stale within a sync cycle.
    """

    def __init__(self, gist_id: str, token: str):
        self._gist_id = gist_id
        self._gh = Github(auth=Auth.Token(token))
        self._records: dict[str, dict] | None = None

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _load(self) -> dict[str, dict]:
        if self._records is None:
            try:
                gist = self._get_gist()
            except GithubException as e:
                raise StoreError(f"Cannot read Gist {self._gist_id}: {e}") from e
            self._records = self._read_records(gist)
        return self._records

    def get(self, key: str) -> LedgerEntry | None:
        data = self._load().get(key)
        if data is None:
            return None
        try:
            return LedgerEntry.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Corrupt ledger entry {key}: {e}") from e

    def put(self, key: str, entry: LedgerEntry) -> None:
        records = dict(self._load())
        records[key] = entry.to_dict()
        content = json.dumps(records, indent=2, sort_keys=True)
        try:
            self._get_gist().edit(files={_GIST_FILENAME: InputFileContent(content)})
        except GithubException as e:
            raise StoreError(f"Cannot write Gist {self._gist_id}: {e}") from e
        self._records = records
        logger.debug("Stored ledger entry %s in Gist %s", key, self._gist_id)

    def keys(self) -> list[str]:
        return list(self._load())

    @staticmethod
    def _read_records(gist) -> dict[str, dict]:
        """Read the ledger object from the Gist file, or return {} if the file is absent."""
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return {}
        try:
            data = json.loads(file_obj.content or "{}")
        except json.JSONDecodeError as e:
            raise StoreError(f"Gist file {_GIST_FILENAME} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Gist file {_GIST_FILENAME} does not hold a JSON object")
        return data
