from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH.exists():
    src_str = str(SRC_PATH)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from app.db import session_scope  # noqa: E402
from app.settings import get_settings  # noqa: E402
from pipelines.common.compensation_store import SCHEMA_STATEMENTS, ensure_schema  # noqa: E402


def main() -> None:
    settings = get_settings()
    with session_scope(settings) as session:
        ensure_schema(session)
    print(f"Applied {len(SCHEMA_STATEMENTS)} schema statements to {settings.database_url}.")


if __name__ == "__main__":
    main()
