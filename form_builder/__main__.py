"""Entry point for ``python -m form_builder``"""

from form_builder.cli.main import app

if __name__ == "__main__":
    app()
