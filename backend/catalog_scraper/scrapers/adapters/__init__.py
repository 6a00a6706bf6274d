"""Site adapter definitions.

Each module declares one SiteAdapter instance; ``ALL_ADAPTERS`` is what
``register_all_adapters()`` installs into the factory.
"""

from .ajio import AJIO
from .croma import CROMA
from .licious import LICIOUS
from .thebodyshop import THE_BODY_SHOP
from .vijaysales import VIJAY_SALES

ALL_ADAPTERS = (AJIO, CROMA, LICIOUS, THE_BODY_SHOP, VIJAY_SALES)

__all__ = [
    "AJIO",
    "CROMA",
    "LICIOUS",
    "THE_BODY_SHOP",
    "VIJAY_SALES",
    "ALL_ADAPTERS",
]
