"""Draft Room - LoL pick/ban simulator with cross-tab sync."""
