"""ui-inventory — crop UI evidence from screenshots and trace style tokens."""

__version__ = '0.3.0'
