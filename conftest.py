import os

# Load .env.test for tests if present so local overrides never leak into runs
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with the test env vars
get_settings.cache_clear()
