"""Report delivery package."""

from src.delivery.dispatcher import DeliveryDispatcher, email_subject

__all__ = ["DeliveryDispatcher", "email_subject"]
