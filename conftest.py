"""
Root conftest for the tweet cache test suite.

Sets environment variables BEFORE any tweetcache module is imported, so that
``tweetcache.config.Settings`` is built from known values rather than
whatever the developer's shell or ``.env`` provides.
"""

import os

# Must be set before any import of tweetcache.config triggers Settings()
os.environ.setdefault("TWITTER_BEARER_TOKEN", "test-bearer-token")
os.environ.setdefault("TWITTER_BASE_URL", "https://api.twitter.com")
os.environ.pop("STORE_DIR", None)
