"""Process-wide defaults for the data.gouv.fr resource client.

Nothing here is required: every operation takes its base URL, dataset
id and API key explicitly.  ``DEMO_BASE_URL`` is provided for callers
testing against the demo platform.
"""

from __future__ import annotations

import os

DEMO_BASE_URL = "https://demo.data.gouv.fr/api/1"

# Seconds.  Uploads of large files may need more than the default.
REQUEST_TIMEOUT = float(os.getenv("DATAGOUV_TIMEOUT", "30"))

USER_AGENT = "datagouv_resources/0.1 (ResourceClient)"
