"""Подсистема настроек devdb."""
