"""
Domain Constants

Centrally manages constants shared across the execution engine.
"""

# Default judge panel (chat models)
DEFAULT_MODELS = [
    # "gemini-3-pro-preview",
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    # "claude-sonnet-4-5-20250929",
    "claude-haiku-4-5-20251001",
]

# Default embedding models
DEFAULT_EMBEDDING_MODELS = [
    "text-embedding-005",
]

# Aggregation
DEFAULT_AGGREGATOR = "AVERAGE"
DEFAULT_CONSENSUS_TOLERANCE = 0.1
MAJORITY_VOTE_THRESHOLD = 0.5

# Providers (used for rate limiting and client selection)
PROVIDER_CLAUDE = "claude"
PROVIDER_LMSTUDIO = "lmstudio"
PROVIDER_VERTEX_AI = "vertex_ai"

# Width of the boxed log reports and charts
REPORT_WIDTH = 100
