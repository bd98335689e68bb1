"""Allow ``python -m x3f_extract``."""

from x3f_extract.cli.cli import app

if __name__ == "__main__":
    app(prog_name="x3f-extract")
