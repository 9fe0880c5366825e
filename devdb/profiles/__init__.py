"""Именованные профили экземпляров базы."""
