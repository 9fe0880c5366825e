"""Обёртки над docker SDK для управления контейнером базы."""
