"""Описание и проверка локальной PostgreSQL базы."""
