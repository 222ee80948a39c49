import sys
from pathlib import Path

# Tests import ``effectsync`` from the source tree without an install
SRC_DIR = Path(__file__).resolve().parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
