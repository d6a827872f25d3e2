"""Reactinator - Helper bot to react with any emoji."""
