"""
Data layer for CareerPal.

Submodules:
- models: Pydantic record and payload models
- storage: Local and MongoDB storage adapters
- database: MongoDB connection management
"""
