"""
Distribution service - fares, tariffs and their time-based lifecycle.
"""
