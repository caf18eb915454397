"""Tests for the payment pin importer."""
