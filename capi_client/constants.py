"""Constants shared by the CAPI client modules."""

from __future__ import annotations

from typing import Final

ENV_DEV: Final = "dev"
ENV_PROD: Final = "prod"

DEV_URL: Final = "https://api.dev.crowdsec.net/v2/"
PROD_URL: Final = "https://api.crowdsec.net/v2/"

URL_BY_ENV: Final = {ENV_DEV: DEV_URL, ENV_PROD: PROD_URL}

VERSION: Final = "v0.1.0"

USER_AGENT_PREFIX: Final = "Python CrowdSec CAPI client/"

# Seconds
API_TIMEOUT: Final = 10

MACHINE_ID_LENGTH: Final = 48
PASSWORD_LENGTH: Final = 32
