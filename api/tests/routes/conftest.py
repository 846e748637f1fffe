"""Route test configuration.

Route tests hit the same endpoints many times per module, so the slowapi
limiter is switched off here. tests/core/test_ratelimit.py covers limiting.
"""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _no_rate_limits():
    with patch("core.ratelimit.limiter.enabled", False):
        yield
