from __future__ import annotations

from javagadgets.cli import app


def main() -> None:
    app(prog_name="javagadgets")


if __name__ == "__main__":
    main()
