"""
Machine Learning modules for CareerPal.

Submodules:
- embeddings: Text embedding, similarity and embedding caching
"""
