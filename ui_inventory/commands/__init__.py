"""CLI commands: crop, trace and capture. See ui_inventory.registry."""
