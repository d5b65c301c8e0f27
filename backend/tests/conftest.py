import os
import tempfile

# Configure the app for tests before anything imports it
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="activities-media-")
os.environ["SESSION_COOKIE_SECURE"] = "false"
for name in ("S3_BUCKET_NAME", "GEMINI_API_KEY", "OPENAI_API_KEY"):
    os.environ.pop(name, None)
