"""Вспомогательные утилиты devdb."""
