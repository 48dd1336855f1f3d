import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_app(tmp_path: Path, store=None, strict_stock: bool = False):
    from pst.application.container import build_container
    from pst.config import Settings
    from pst.repositories.sqlite_store import SqliteStore

    if store is None:
        store = SqliteStore(tmp_path / "stock.db")
    store.init_db()
    return build_container(Settings(db_path=tmp_path / "stock.db", strict_stock=strict_stock), store=store)
