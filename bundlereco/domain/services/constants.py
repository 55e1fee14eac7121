from decimal import Decimal

# Recommendation kinds
KIND_BUNDLE = "bundle"   # Products frequently bought together, sold as one offer
KIND_UPSELL = "upsell"   # Higher-priced alternative within the same category

# List of all supported kinds (prompt builder validates against it)
ALL_KINDS = {KIND_BUNDLE, KIND_UPSELL}

# Affinity analysis
MIN_PAIR_FREQUENCY = 2      # pairs seen in a single order are noise
BUNDLE_CAP = 10             # top co-purchase pairs (prompt context and fallback alike)

# Price-tier analysis (inclusive bounds on (upper - lower) / lower)
MIN_UPGRADE_RATIO = Decimal("0.2")
MAX_UPGRADE_RATIO = Decimal("2")
UPSELL_CAP = 20             # upgrade paths (prompt context and fallback alike)

# Discounts (percent)
HEURISTIC_BUNDLE_DISCOUNT = 10
HEURISTIC_UPSELL_DISCOUNT = 5
GENERATED_BUNDLE_DISCOUNT_RANGE = (5, 15)
GENERATED_UPSELL_DISCOUNT_RANGE = (0, 10)
DEFAULT_GENERATED_BUNDLE_DISCOUNT = 10
DEFAULT_GENERATED_UPSELL_DISCOUNT = 5

# Parsed generative candidates get priority = PRIORITY_BASE - index
PRIORITY_BASE = 100

# Platform identifiers look like "gid://shopify/Product/123"
GID_SCHEME = "://"
