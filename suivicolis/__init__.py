"""SuiviColis - suivi de colis et de commandes multi-organisations."""

__version__ = "1.0.0"
