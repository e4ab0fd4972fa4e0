"""
Core business logic modules for CareerPal.

Submodules:
- matching: Instant CV-to-job match scoring
- search: Semantic and hybrid application search
- app_context: Wiring of settings, embedding service and storage
"""
