"""Static registry of provider adapters.

Adding a provider means adding a BaseProvider subclass and one entry here.
"""

from typing import Dict, List

from .base_provider import BaseProvider
from .lighthouse import LighthouseProvider
from .pagespeed import PageSpeedProvider
from .webpagetest import WebPageTestProvider

PROVIDERS: Dict[str, BaseProvider] = {
    "lighthouse": LighthouseProvider(),
    "pagespeed": PageSpeedProvider(),
    "webpagetest": WebPageTestProvider(),
}

# Web Vital selection order, most trusted first
PLATFORM_PRIORITY: List[str] = ["lighthouse", "pagespeed", "webpagetest"]
