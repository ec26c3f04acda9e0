"""
A★ Tutor Test Suite

Unit tests for the agent loop, dispatcher, integration registry, clients
and tools. Live-API tests are marked `integration` and deselected by default.
Run tests with: pytest tests/
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
