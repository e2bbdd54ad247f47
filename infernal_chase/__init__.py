"""
Infernal Chase - tactical resolution engine for vehicle chase combat.

Resolves combat scale, movement budgets, attack arcs and cover, elevation
modifiers and vehicle mishaps for infernal war machine encounters.
"""

__version__ = "0.1.0"
