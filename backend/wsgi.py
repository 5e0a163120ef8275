# backend/wsgi.py
# Entry point for `flask --app wsgi ...` and WSGI servers.
import os

from beanlink import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "10000")))
