"""Test utilities for roost applications::

    from roost.testing import TestClient, basic_auth
"""

from roost.testing.client import TestClient, basic_auth

__all__ = ["TestClient", "basic_auth"]
