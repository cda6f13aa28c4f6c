"""
Updater service package.

The updater fronts the upstream update distribution API and serves the
current version and the signed payload from a cache, revalidating with a
cheap version check once the freshness window has passed.

Structure:
- app.main: FastAPI app, routes and envelope rendering.
- app.adapters: HTTP client for the origin.
- app.caching: Key-value backends, chunked blobs and the typed cache.
- app.freshness: The freshness and revalidation policy.
- app.models: Content, decision and envelope models.
"""
