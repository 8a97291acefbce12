"""Versioned controllers used by the Api plugin tests (namespace ``sampleapp.api``)."""
