import os

from partquote.services.costs import DatabaseCostTable, FallbackCostTable, StaticCostTable
from partquote.services.options import DatabaseOptionSource, OptionResolver, StaticOptionSource
from partquote.services.pricing import PriceEngine

# "database" reads costs and option sets from the catalog tables, falling back to the
# built-in catalog; "static" uses the built-in catalog only
PRICING_SOURCE = os.getenv("PRICING_SOURCE", "database")


def get_price_engine() -> PriceEngine:
    if PRICING_SOURCE == "static":
        return PriceEngine(StaticCostTable())
    return PriceEngine(FallbackCostTable(DatabaseCostTable(), StaticCostTable()))


def get_option_resolver() -> OptionResolver:
    if PRICING_SOURCE == "static":
        return OptionResolver([StaticOptionSource()])
    return OptionResolver([DatabaseOptionSource(), StaticOptionSource()])
