"""ui_inventory.core — Foundation layer.

Contains the data model, the capture encoding pipeline, the token trace
builder, transport codecs, the asset cache, configuration and the report
builder. This module has NO dependencies on ui_inventory.commands or
ui_inventory.registry. Only stdlib and PIL are allowed here.
"""
