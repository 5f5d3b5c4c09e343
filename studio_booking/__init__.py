"""
Studio booking engine: pricing, availability, reservation lifecycle and
the reschedule/cancellation policy of a photo-studio booking platform.
"""

__version__ = "1.0.0"
