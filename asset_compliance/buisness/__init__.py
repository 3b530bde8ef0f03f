"""
Domain layer for the asset compliance tracker.
Contains the compliance engines, the cache-coherent access layer and the
managers that the presentation layer calls, separated from persistence concerns.
"""
