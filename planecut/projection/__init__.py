"""Ортогональные проекции контуров сечения."""
