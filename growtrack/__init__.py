"""
GrowTrack - Tray-Lebenszyklus und Platzbelegung für Vertical Farming
"""
__version__ = "1.0.0"
