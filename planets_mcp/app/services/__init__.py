"""
Service layer.

The registry, the dispatcher and the request context implement the
request lifecycle; ``planet_service`` is the data source behind the
``getPlanets`` tool and ``tools`` wires the two together.  Swapping
the catalog for another source does not touch the API handlers.
"""
