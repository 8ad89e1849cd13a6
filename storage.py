"""
Local ledger store: one JSON document per ledger id plus an index of
known ledgers (id, name, last access).
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import List, Optional

from config import get_default_ledger, ledger_to_dict, load_ledger_file, save_ledger_file
from models import Ledger
from utils import app_dir, new_id, now_millis

logger = logging.getLogger(__name__)

INDEX_FILE = "ledgers_v1.json"


class LedgerNotFoundError(KeyError):
    """Raised when a ledger id is not in the store"""


@dataclass
class LedgerMeta:
    id: str
    name: str
    last_access: int


class LedgerStore:
    """Key-value JSON store keyed by ledger id"""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or app_dir()
        os.makedirs(self.base_dir, exist_ok=True)

    # ---------- paths ----------
    def _path(self, ledger_id: str) -> str:
        return os.path.join(self.base_dir, f"ledger_data_{ledger_id}.json")

    def _index_path(self) -> str:
        return os.path.join(self.base_dir, INDEX_FILE)

    # ---------- index ----------
    def _read_index(self) -> List[LedgerMeta]:
        try:
            with open(self._index_path(), "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            logger.warning("Ledger index %s is corrupt, starting empty", self._index_path())
            return []
        return [LedgerMeta(str(m["id"]), str(m.get("name", "")), int(m.get("last_access", 0))) for m in data]

    def _write_index(self, metas: List[LedgerMeta]) -> None:
        with open(self._index_path(), "w", encoding="utf-8") as f:
            json.dump([asdict(m) for m in metas], f, ensure_ascii=False, indent=2)

    def _upsert_meta(self, ledger_id: str, name: str) -> None:
        metas = [m for m in self._read_index() if m.id != ledger_id]
        metas.append(LedgerMeta(ledger_id, name, now_millis()))
        self._write_index(metas)

    # ---------- ledgers ----------
    def list(self) -> List[LedgerMeta]:
        """Known ledgers, most recently accessed first"""
        return sorted(self._read_index(), key=lambda m: m.last_access, reverse=True)

    def most_recent(self) -> Optional[str]:
        metas = self.list()
        return metas[0].id if metas else None

    def create(self, name: str, ledger: Optional[Ledger] = None) -> str:
        """Create and save a new ledger, returns its id"""
        ledger = ledger or get_default_ledger(name, self.base_dir)
        ledger.name = name
        ledger_id = new_id()
        self.save(ledger_id, ledger)
        logger.info("Created ledger %r (%s)", name, ledger_id)
        return ledger_id

    def save(self, ledger_id: str, ledger: Ledger) -> None:
        save_ledger_file(ledger, self._path(ledger_id))
        self._upsert_meta(ledger_id, ledger.name)

    def load(self, ledger_id: str) -> Optional[Ledger]:
        """Load a ledger (upgrading old layouts), or None if missing"""
        path = self._path(ledger_id)
        if not os.path.exists(path):
            return None
        ledger = load_ledger_file(path)
        self._upsert_meta(ledger_id, ledger.name)
        return ledger

    def get(self, ledger_id: str) -> Ledger:
        ledger = self.load(ledger_id)
        if ledger is None:
            raise LedgerNotFoundError(ledger_id)
        return ledger

    def delete(self, ledger_id: str) -> bool:
        path = self._path(ledger_id)
        existed = os.path.exists(path)
        if existed:
            os.remove(path)
        self._write_index([m for m in self._read_index() if m.id != ledger_id])
        return existed

    def export_json(self, ledger_id: str) -> str:
        """Serialized backup of one ledger"""
        return json.dumps(ledger_to_dict(self.get(ledger_id)), ensure_ascii=False, indent=2)
