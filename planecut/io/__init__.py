"""Ввод моделей (STL)."""
