import os
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent

DB_NAME = "tips.db"
DB_URL = os.environ.get("TIPS_DB_URL", f"sqlite:///{REPO_ROOT / DB_NAME}")

GCP_PROJECT = os.environ.get("GCP_PROJECT", "aog-tips")

SERVICE_ACCOUNT_SECRET = os.environ.get("TIPS_SERVICE_ACCOUNT_SECRET", "tips-service-account")
# Local key file, takes precedence over Secret Manager when set
SERVICE_ACCOUNT_FILE = os.environ.get("TIPS_SERVICE_ACCOUNT_FILE")

PUSH_IN_SANDBOX = os.environ.get("TIPS_PUSH_SANDBOX", "1") == "1"
