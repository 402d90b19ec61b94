"""Booking form builder: template authoring and form runtime"""

__version__ = "0.1.0"
