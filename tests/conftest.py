import os
import tempfile

# Settings are read at import time, so the environment must be in place first.
_TMP_DIR = tempfile.mkdtemp(prefix="roleready-tests-")
os.environ["DATABASE_PATH"] = os.path.join(_TMP_DIR, "roleready.db")
os.environ["ACTIVITY_DB_PATH"] = os.path.join(_TMP_DIR, "activity.db")
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["SEED_CATALOG_ON_STARTUP"] = "0"
os.environ["API_KEY"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["SENTRY_DSN"] = ""
