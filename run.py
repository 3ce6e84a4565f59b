"""Local development entry point.

Usage:
    python run.py

Loads .env, builds the app with FLASK_ENV (default "development") and
serves the JSON API on port 8080.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from taskboard import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
