"""
wsgi.py – Gym&Gain entry point
────────────────────────────────────────────
Used by gunicorn:  gunicorn gymgain.wsgi:app
────────────────────────────────────────────
"""

import os
from gymgain import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    app.run(host="0.0.0.0", port=port)
