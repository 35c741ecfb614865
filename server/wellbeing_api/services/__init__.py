"""Background services for the wellbeing API."""
