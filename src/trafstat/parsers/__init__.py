"""Interpretadores de cabeçalhos: enlace, IP, transporte e DNS."""
