"""
BiteInsight - personalised food scan classification engine

Takes a scanned product (Open Food Facts data) and a person's health profile and
produces ingredient buckets, allergen warnings, nutrient ratings, ranked impact
insights and substitute suggestions.
"""

__version__ = '0.3.0'
