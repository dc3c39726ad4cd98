import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Allow requests from this origin
ALLOW_ORIGIN: Optional[str] = os.environ.get("ALLOW_ORIGIN")

# If true, enable docs and openapi.json endpoints
ENABLE_DOCS: bool = os.environ.get("ENABLE_DOCS") == "1"

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# JSON file with role definitions; the built-in catalogue is used when unset
ROLE_DEFINITIONS_FILE: Optional[str] = os.environ.get("ROLE_DEFINITIONS_FILE")

# Bearer tokens are issued elsewhere and verified here; there is no default secret
JWT_SECRET: Optional[str] = os.environ.get("JWT_SECRET")
JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")

ACCESS_CHECK_RATE_LIMIT: str = os.environ.get("ACCESS_CHECK_RATE_LIMIT", "60/minute")
