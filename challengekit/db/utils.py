from pathlib import Path
from datetime import datetime, timezone
from typing import Optional


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def epoch_to_datetime(value: Optional[int]) -> Optional[datetime]:
    """Convert epoch seconds to an aware UTC datetime, or return None.

    Session expiries are stored as integers; this is used when rendering them
    for humans (logs, seed scripts).
    """
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)
