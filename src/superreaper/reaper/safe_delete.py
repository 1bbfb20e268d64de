"""Backups of files before their methods are removed, with restoration."""
import shutil
import secrets
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional

from .manifest import Manifest


class SafeDeleter:
    """Copies files into the trash directory before they are rewritten."""

    def __init__(self, trash_dir: str | Path = ".reaper_trash"):
        """Initialize safe deleter.

        Args:
            trash_dir: Path to trash directory (default: .reaper_trash)
        """
        self.trash_dir = Path(trash_dir)
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        self.manifest = Manifest(self.trash_dir)

    def backup(self, file_path: str | Path, reason: str = "super-methods",
               removed_methods: Optional[List[Dict]] = None) -> str:
        """Copy file to trash and record it in the manifest.

        Args:
            file_path: Path to the file about to be rewritten
            reason: Reason for the rewrite
            removed_methods: Records of the declarations being removed

        Returns:
            Backup ID for restoration

        Raises:
            FileNotFoundError: If file doesn't exist
            IOError: If the copy fails
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        backup_id = self._generate_backup_id()

        backup_dir = self.trash_dir / backup_id
        backup_dir.mkdir(parents=True, exist_ok=True)

        backup_path = backup_dir / file_path.name
        shutil.copy2(str(file_path), str(backup_path))

        self.manifest.add_backup(
            backup_id=backup_id,
            original_path=str(file_path.resolve()),
            backup_path=str(backup_path),
            reason=reason,
            file_hash=self.manifest.calculate_file_hash(backup_path),
            removed_methods=removed_methods or []
        )

        return backup_id

    def restore(self, backup_id: str):
        """Copy a backup over its original file.

        Args:
            backup_id: Backup identifier

        Raises:
            ValueError: If backup ID not found
            IOError: If the backup file is missing
        """
        record = self.manifest.get_backup(backup_id)

        if not record:
            raise ValueError(f"Backup ID not found: {backup_id}")

        # Silent return if already restored
        if record.get("restored", False):
            return

        backup_path = Path(record["backup_path"])
        original_path = Path(record["original_path"])

        if not backup_path.exists():
            raise IOError(f"Backup file not found in trash: {backup_path}")

        original_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(backup_path), str(original_path))

        self.manifest.mark_restored(backup_id)

    def list_backups(self) -> List[Dict]:
        """All backup records, oldest first."""
        return self.manifest.get_all_backups()

    def _generate_backup_id(self) -> str:
        """Generate unique backup ID with timestamp.

        Returns:
            Backup ID in format: YYYYMMDD_HHMMSS_randomhex
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = secrets.token_hex(3)
        return f"{timestamp}_{random_suffix}"
