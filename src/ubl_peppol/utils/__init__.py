"""Utilitaires : montants, schémas Peppol et XML."""
