"""Punto de entrada de la app Kivy."""

from __future__ import annotations

import sys
from pathlib import Path

from activity_chart.app import load_sessions_file, run_app


def main(argv: list[str] | None = None) -> int:
    """Run app entrypoint: ``python -m activity_chart [sessions.json]``."""
    args = sys.argv[1:] if argv is None else argv
    sessions = load_sessions_file(Path(args[0]).expanduser()) if args else []
    try:
        return run_app(sessions)
    except ImportError as exc:
        print(f"No se pudo iniciar Kivy: {exc}")
        print("Instala dependencias de GUI: pip install kivy")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
