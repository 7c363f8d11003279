"""Pytest configuration for clapctl tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest
from botocore.exceptions import ClientError


def make_client_error(code: str, message: str = '', operation: str = 'Operation') -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""
    return make_client_error
