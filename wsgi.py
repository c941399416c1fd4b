"""
WSGI Entry Point for Production Deployment

Usage with Gunicorn:
    gunicorn wsgi:app --bind 0.0.0.0:8080 --workers 4 --timeout 300

Each URL can take up to the HTML fetch timeout plus the WHOIS timeout, so
the worker timeout must cover the largest accepted batch.

DATABASE_URL must be set; startup exits if the database is unreachable.
"""

from app import build_production_app

app = build_production_app()

if __name__ == "__main__":
    # Only for local testing; production servers import `app` directly
    app.run()
