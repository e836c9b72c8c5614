# Ensure 'backend/' is on sys.path so 'import servicehub' works
# even when pytest rootdir is 'backend/'.
import os
from pathlib import Path
import sys

_BACKEND_DIR = Path(__file__).resolve().parent  # <repo>/backend
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

# Never point the module-level engine at a developer database during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
