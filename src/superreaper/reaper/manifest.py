"""Backup manifest management for restoring rewritten files."""
import json
from pathlib import Path
from datetime import datetime
from typing import List, Dict, Optional
import hashlib


class Manifest:
    """Manage the JSON manifest that tracks file backups."""

    VERSION = "1.0"

    def __init__(self, trash_dir: str | Path):
        """Initialize manifest.

        Args:
            trash_dir: Path to trash directory
        """
        self.trash_dir = Path(trash_dir)
        self.manifest_path = self.trash_dir / "manifest.json"
        self._ensure_manifest_exists()

    def _ensure_manifest_exists(self):
        """Create manifest file if it doesn't exist."""
        self.trash_dir.mkdir(parents=True, exist_ok=True)

        if not self.manifest_path.exists():
            self._write_manifest({"version": self.VERSION, "backups": []})

    def _read_manifest(self) -> Dict:
        """Read manifest from disk.

        Returns:
            Manifest dictionary (empty if the file is missing or corrupt)
        """
        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (IOError, json.JSONDecodeError):
            return {"version": self.VERSION, "backups": []}

    def _write_manifest(self, data: Dict):
        """Write manifest to disk atomically.

        Args:
            data: Manifest dictionary to write
        """
        temp_path = self.manifest_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        # Atomic rename
        temp_path.replace(self.manifest_path)

    def add_backup(self, backup_id: str, original_path: str, backup_path: str,
                   reason: str, file_hash: str, removed_methods: List[Dict]):
        """Add backup record to manifest.

        Args:
            backup_id: Unique backup identifier
            original_path: Path of the rewritten file
            backup_path: Path of the copy in the trash directory
            reason: Why the file was rewritten
            file_hash: SHA256 hash of the original content
            removed_methods: Records of the declarations removed from the file
        """
        manifest = self._read_manifest()

        manifest.setdefault("backups", []).append({
            "id": backup_id,
            "original_path": str(original_path),
            "backup_path": str(backup_path),
            "created_at": datetime.now().isoformat(),
            "reason": reason,
            "file_hash": file_hash,
            "removed_methods": removed_methods,
            "restored": False
        })
        self._write_manifest(manifest)

    def get_backup(self, backup_id: str) -> Optional[Dict]:
        """Get backup record by ID, or None if not found."""
        for backup in self.get_all_backups():
            if backup["id"] == backup_id:
                return backup
        return None

    def mark_restored(self, backup_id: str):
        """Mark backup as restored.

        Args:
            backup_id: Backup identifier
        """
        manifest = self._read_manifest()

        for backup in manifest.get("backups", []):
            if backup["id"] == backup_id:
                backup["restored"] = True
                break

        self._write_manifest(manifest)

    def get_all_backups(self) -> List[Dict]:
        manifest = self._read_manifest()
        return manifest.get("backups", [])

    @staticmethod
    def calculate_file_hash(file_path: str | Path) -> str:
        """Calculate SHA256 hash of file.

        Args:
            file_path: Path to file

        Returns:
            SHA256 hash as hex string
        """
        sha256_hash = hashlib.sha256()

        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)

        return sha256_hash.hexdigest()
