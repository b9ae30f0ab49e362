"""Database backup script: creates a timestamped SQLite backup."""

import shutil
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clean_village.config import Config

KEEP_BACKUPS = 10


def backup_database(db_path: Path | None = None,
                    backup_dir: Path | None = None) -> Path | None:
    """Copy the database file to the backup directory with a timestamp.

    Returns the backup path, or None when there is no database yet.
    """
    db_path = Path(db_path or Config.DATABASE_PATH)
    backup_dir = Path(backup_dir or Config.BACKUP_PATH)
    backup_dir.mkdir(parents=True, exist_ok=True)

    if not db_path.exists():
        print(f"Database not found at {db_path}")
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_file = backup_dir / f"clean_village_{timestamp}.db"
    shutil.copy2(db_path, backup_file)
    print(f"Backup created: {backup_file}")

    # Keep only the most recent backups
    backups = sorted(backup_dir.glob("clean_village_*.db"), reverse=True)
    for old in backups[KEEP_BACKUPS:]:
        old.unlink()
        print(f"Removed old backup: {old.name}")
    return backup_file


if __name__ == "__main__":
    backup_database()
