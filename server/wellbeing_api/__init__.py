"""Wellbeing API - HTTP surface over the wellbeing engine."""
