"""orderdesk - order lifecycle, history and analytics service for restaurant staff"""

__version__ = "1.0.0"
