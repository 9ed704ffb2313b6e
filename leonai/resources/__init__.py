from .motion import MotionResource, advance_feed, advance_status, mime_type_for

__all__ = ["MotionResource", "advance_feed", "advance_status", "mime_type_for"]
