"""Core domain logic for diagnostic health analysis.

This package contains the business logic and domain models,
isolated from storage and transport for easy testing and reasoning.
"""
