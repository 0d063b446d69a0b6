"""
Plumbing shared by the car API: settings, the asyncpg pool and the
per-request connection middleware, error rendering, logging setup.

Car SQL and request handling live in `cars/`.
"""
