# app/schemas/__init__.py
from .driver import DriverCreate, DriverUpdate, DriverOut
