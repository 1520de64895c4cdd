import sys
from pathlib import Path

# The repo root holds the top-level packages (core, providers, registry, ...);
# make them importable without installing.
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
