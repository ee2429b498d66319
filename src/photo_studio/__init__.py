"""Photo studio job pipeline.

Accepts product-photo transformation requests, routes them to the Photoroom
(synchronous) or Fashn (submit-then-poll) providers, records each attempt as
a job and charges credits only after a result has been stored.
"""

from .main import create_app

__all__ = ["create_app"]
