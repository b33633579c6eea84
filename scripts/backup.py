"""Backup the kv_store database with `mysqldump`."""

from __future__ import annotations

import importlib
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "church_crm"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import get_settings_module

from church_crm.storage.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db = DBConfig.from_dict(settings.DB_CONFIG)

    out_dir = REPO_ROOT / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"{db.database}_{ts}.sql"

    cmd = [
        "mysqldump",
        f"-h{db.host}",
        f"-P{db.port}",
        f"-u{db.user}",
        f"-p{db.password}",
        db.database,
        "kv_store",
    ]

    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True)
        print(f"OK: Backup created: {out_file}")
    except FileNotFoundError:
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools.")


if __name__ == "__main__":
    main()
