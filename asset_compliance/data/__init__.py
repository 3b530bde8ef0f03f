"""
Data layer for the asset compliance tracker
SQLAlchemy models (system of record) and the repository / cache store collaborators
"""
