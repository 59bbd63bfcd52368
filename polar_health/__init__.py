"""Polar Flow OAuth and AccessLink data aggregation service."""
