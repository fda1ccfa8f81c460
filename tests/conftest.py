import os
import sys


def pytest_configure():
    # Ensure `src/` is importable so `confighub` resolves without an install
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
