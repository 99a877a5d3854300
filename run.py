"""Local development entry point.

Usage:
    python run.py              # API on :5001
    flask --app run seed-demo  # CLI commands use the same app

Reads .env first, so STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET /
DATABASE_URL can live there during development.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before the config classes read os.environ

from artwalls import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
