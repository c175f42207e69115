"""File storage for DID logs and witness proof files."""

import json
import logging
import os

from config import settings
from webvh.errors import StorageError
from webvh.plugins.fetcher import parse_log
from webvh.utilities import split_did

logger = logging.getLogger(__name__)

LOG_FILE = "did.jsonl"
WITNESS_FILE = "did-witness.json"


class LogStorage:
    """Append-only storage of DID logs, one directory per DID path."""

    def __init__(self, root=None):
        """Initialize the storage under a root directory."""
        self.root = root or settings.LOGS_DIR

    def did_path(self, did: str) -> str:
        """Return the storage path of a DID."""
        _, _, paths = split_did(did)
        return "/".join(paths) if paths else ".well-known"

    def _file(self, did_path: str, name: str) -> str:
        return os.path.join(self.root, *did_path.split("/"), name)

    def log_path(self, did_path: str) -> str:
        """Return the did.jsonl file path."""
        return self._file(did_path, LOG_FILE)

    def witness_path(self, did_path: str) -> str:
        """Return the did-witness.json file path."""
        return self._file(did_path, WITNESS_FILE)

    def read_log(self, did_path: str) -> list:
        """Read a stored log, an empty list when none is stored."""
        path = self.log_path(did_path)
        if not os.path.exists(path):
            return []
        with open(path, "r", encoding="utf-8") as log_file:
            return parse_log(log_file.read())

    def write_log(self, did_path: str, log: list):
        """Store a new log."""
        if self.read_log(did_path):
            raise StorageError(f"A log is already stored for {did_path}.")
        path = self.log_path(did_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as log_file:
            log_file.writelines(f"{json.dumps(entry)}\n" for entry in log)
        logger.info(f"Stored log for {did_path} ({len(log)} entries)")

    def append_log(self, did_path: str, log: list):
        """Append the new entries of a log to the stored log."""
        stored = self.read_log(did_path)
        if not stored:
            return self.write_log(did_path, log)
        if log[: len(stored)] != stored:
            raise StorageError(f"Log for {did_path} does not extend the stored log.")
        new_entries = log[len(stored) :]
        path = self.log_path(did_path)
        with open(path, "r+", encoding="utf-8") as log_file:
            content = log_file.read()
            if content and not content.endswith("\n"):
                log_file.write("\n")
            log_file.writelines(f"{json.dumps(entry)}\n" for entry in new_entries)
        logger.info(f"Appended {len(new_entries)} entries to {did_path}")

    def read_witness_file(self, did_path: str) -> list:
        """Read the witness proof file."""
        path = self.witness_path(did_path)
        if not os.path.exists(path):
            return []
        with open(path, "r", encoding="utf-8") as witness_file:
            return json.load(witness_file)

    def write_witness_file(self, did_path: str, proof_files: list):
        """Merge witness proofs into the stored witness file by versionId."""
        merged = {item["versionId"]: item for item in self.read_witness_file(did_path)}
        for proof_file in proof_files:
            version_id = proof_file["versionId"]
            if version_id not in merged:
                merged[version_id] = {"versionId": version_id, "proof": []}
            for proof in proof_file.get("proof") or []:
                if proof not in merged[version_id]["proof"]:
                    merged[version_id]["proof"].append(proof)
        path = self.witness_path(did_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as witness_file:
            json.dump(list(merged.values()), witness_file, indent=2)
