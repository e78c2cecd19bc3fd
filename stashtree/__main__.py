"""``python -m stashtree`` runs the same CLI as the ``stashtree`` script."""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
