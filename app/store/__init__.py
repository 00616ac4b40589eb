# app/store/__init__.py
from .driver import DriverStore
