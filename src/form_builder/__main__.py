# form_builder/__main__.py
# Allows execution via: python -m form_builder

from form_builder.cli import app

if __name__ == "__main__":
    app()
