"""
CareerPal local matching engine.

Embedding-based CV-to-job match scoring and semantic search over saved
job applications, with a pluggable local/server storage layer.
"""

__app_name__ = "CareerPal"
__version__ = "0.1.0"
