"""Coordination application for the organ portal.

Holds the models, matching engine services, serializers, views and
route registrations for cross-hospital organ matching.
"""
