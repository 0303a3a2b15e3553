"""Tests for the pool localizer."""
