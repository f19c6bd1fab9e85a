"""
Pytest configuration for the Plex Wrapped test suite.

Puts the project root on the Python path so tests import the package as
``src.plex``.
"""
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
