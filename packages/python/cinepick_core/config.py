from datetime import timedelta


ALGORITHM_TAG = "random-v1"
RECOMMENDATION_SOURCE = "recommendations_page"

COOLDOWN_DAYS = 7
COOLDOWN_WINDOW = timedelta(days=COOLDOWN_DAYS)

LOOKUP_TIMEOUT_SEC = 5.0  # per catalog lookup
METADATA_CACHE_TTL_SEC = 24 * 3600

# TMDB genre ids
ANIMATION_GENRE_ID = 16
JAPANESE_LANGUAGE = "ja"

NOVELTY_HORIZON_DAYS = 30

# Placeholder feature values, not modeled yet
SIMILARITY_PLACEHOLDER = 0.5
DIVERSITY_PLACEHOLDER = 0.7
ACCEPTANCE_PLACEHOLDER = 0.5

ADULT_AGE = 18
